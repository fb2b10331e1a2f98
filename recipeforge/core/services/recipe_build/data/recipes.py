"""
L0 Data — Built-in component recipes.

Static recipe data, defined once at import and never mutated.
Checksums are published values: changing one for an existing version
is refused by the registry (see ``data/registry.py``).
"""

from __future__ import annotations

from recipeforge.core.models.recipe import (
    ComponentRecipe,
    PlatformCategory,
    PlatformProfile,
    VersionSourceDescriptor,
)

_PYTHON3_UNIX_DEPS = [
    "libffi",
    "ncurses",
    "zlib",
    "openssl",
    "bzip2",
    "libsqlite3",
    "liblzma",
    "libyaml",
]

# There is no configure flag to stop Python from compiling readline support,
# so the extension module is removed after install.
_PYTHON3_CLEANUP = [
    "{embedded}/lib/python{major}.{minor}/lib-dynload/readline.*",
]

# Prebuilt Windows archives are copied into a separate embedded tree.
_WINDOWS_EMBEDDED = "embedded3"

PYTHON3 = ComponentRecipe(
    name="python3",
    description="CPython 3 runtime embedded under <install-root>/embedded",
    license="PSFL",
    default_version="3.7.1",
    versions=[
        VersionSourceDescriptor(
            version="3.6.7",
            checksum="b7c36f7ed8f7143b2c46153b7332db2227669f583ea0cce753facf549d1a4239",
        ),
        VersionSourceDescriptor(
            version="3.7.1",
            checksum="36c1b81ac29d0f8341f727ef40864d99d8206897be96be73dc34d4739c9c9f06",
        ),
    ],
    url_template="https://python.org/ftp/python/{version}/Python-{version}.tgz",
    relative_path_template="Python-{version}",
    base_env={
        "CFLAGS": "-I{embedded}/include -O2 -g -pipe",
        "LDFLAGS": "-Wl,-rpath,{embedded}/lib -L{embedded}/lib",
    },
    trailing_configure_args=["--with-dbmliborder="],
    profiles=[
        PlatformProfile(
            category=PlatformCategory.WINDOWS_X86,
            build_style="prebuilt",
            default_version="3.7.3",
            sources=[
                VersionSourceDescriptor(
                    version="3.7.3",
                    checksum="27b8712d98251e861698f3282598001d2e52cbc8dd3743f14313b9c9afedd545",
                ),
            ],
            url_template="http://dbs-laptop/pkg/python-windows-{version}-x86.zip",
            relative_path_template="python-windows-{version}-x86",
            install_subdir=_WINDOWS_EMBEDDED,
        ),
        PlatformProfile(
            category=PlatformCategory.WINDOWS_X64,
            dependencies=["vc_redist_14"],
            build_style="prebuilt",
            default_version="3.7.1",
            sources=[
                VersionSourceDescriptor(
                    version="3.7.1",
                    checksum="2ebd2eb2155f7c82ec3d2ba5203e0a250b6bbf60c7c5404f1e03f4bc71a096e1",
                ),
            ],
            url_template="https://s3.amazonaws.com/dd-agent-omnibus/python-windows-{version}-amd64.zip",
            relative_path_template="python-windows-{version}-amd64",
            install_subdir=_WINDOWS_EMBEDDED,
        ),
        # Any other Windows architecture gets the 64-bit archive
        PlatformProfile(
            category=PlatformCategory.WINDOWS,
            dependencies=["vc_redist_14"],
            build_style="prebuilt",
            default_version="3.7.1",
            sources=[
                VersionSourceDescriptor(
                    version="3.7.1",
                    checksum="2ebd2eb2155f7c82ec3d2ba5203e0a250b6bbf60c7c5404f1e03f4bc71a096e1",
                ),
            ],
            url_template="https://s3.amazonaws.com/dd-agent-omnibus/python-windows-{version}-amd64.zip",
            relative_path_template="python-windows-{version}-amd64",
            install_subdir=_WINDOWS_EMBEDDED,
        ),
        PlatformProfile(
            category=PlatformCategory.DARWIN,
            dependencies=list(_PYTHON3_UNIX_DEPS),
            configure_args=[
                "--enable-ipv6",
                "--with-universal-archs=intel",
                "--enable-shared",
            ],
            cleanup_globs=list(_PYTHON3_CLEANUP),
        ),
        PlatformProfile(
            category=PlatformCategory.LINUX,
            dependencies=list(_PYTHON3_UNIX_DEPS),
            configure_args=["--enable-shared", "--enable-ipv6"],
            cleanup_globs=list(_PYTHON3_CLEANUP),
        ),
        PlatformProfile(
            category=PlatformCategory.OTHER_UNIX,
            dependencies=list(_PYTHON3_UNIX_DEPS),
            cleanup_globs=list(_PYTHON3_CLEANUP),
        ),
    ],
)

BUILTIN_RECIPES: dict[str, ComponentRecipe] = {
    PYTHON3.name: PYTHON3,
}
