"""
Smoke tests for verifying core package imports.

These tests ensure that all top-level packages can be imported correctly
before running more comprehensive test suites.
"""

import importlib.resources
from importlib import import_module
from types import ModuleType
from typing import Iterator


def iter_submodules(package: str, exclude: tuple[str, ...] = ()) -> Iterator[tuple[str, ModuleType]]:
    """Iterate over all submodules of a package.

    Args:
        package: The package name to iterate over.
        exclude: Tuple of module names to exclude.

    Yields:
        Tuples of (module_name, module) for each submodule.
    """
    try:
        pkg_files = importlib.resources.files(package)
    except (ImportError, TypeError):
        return

    if not pkg_files.is_dir():
        return

    for item in pkg_files.iterdir():
        if item.name.startswith("_"):
            continue
        name = item.name[:-3] if item.name.endswith(".py") else item.name
        if not (item.is_dir() or item.name.endswith(".py")):
            continue
        module_name = f"{package}.{name}"
        if module_name in exclude:
            continue
        yield module_name, import_module(module_name)
        if item.is_dir():
            yield from iter_submodules(module_name, exclude)


class TestCoreImports:
    """Test that all top-level packages can be imported."""

    def test_import_core(self) -> None:
        """Verify core package imports successfully."""
        import core  # noqa: F401
        assert core is not None

    def test_import_ingestion(self) -> None:
        """Verify ingestion package imports successfully."""
        import ingestion  # noqa: F401
        assert ingestion is not None

    def test_import_libs(self) -> None:
        """Verify libs package imports successfully."""
        import libs  # noqa: F401
        assert libs is not None

    def test_import_observability(self) -> None:
        """Verify observability package imports successfully."""
        import observability  # noqa: F401
        assert observability is not None

    def test_import_retrieval(self) -> None:
        """Verify retrieval package imports successfully."""
        import retrieval  # noqa: F401
        assert retrieval is not None

    def test_import_entry_point(self) -> None:
        """Verify the command-line entry point imports successfully."""
        import main  # noqa: F401
        assert callable(main.cli)


class TestSubmoduleDiscovery:
    """Test that submodules can be discovered and imported."""

    def test_core_submodules(self) -> None:
        module_names = [name for name, _ in iter_submodules("core")]
        assert "core.settings" in module_names
        assert "core.types" in module_names
        assert "core.trace" in module_names

    def test_ingestion_submodules(self) -> None:
        module_names = [name for name, _ in iter_submodules("ingestion")]
        assert "ingestion.soundex" in module_names
        assert "ingestion.soundex.backfill_pipeline" in module_names

    def test_libs_submodules(self) -> None:
        module_names = [name for name, _ in iter_submodules("libs")]
        assert "libs.document_store" in module_names
        assert "libs.phonetic" in module_names

    def test_retrieval_submodules(self) -> None:
        module_names = [name for name, _ in iter_submodules("retrieval")]
        assert "retrieval.search_executor" in module_names
