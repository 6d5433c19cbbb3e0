"""Tests for the command-line entry point.

run() is driven with the in-memory store through its store_factory hook;
main() is driven with run() and configure_logger patched out.
"""

import io
import json
from unittest.mock import patch

import pytest

import main
from core.settings import Settings, SoundexConfig, StoreConfig
from libs.document_store import (
    DocumentStoreError,
    DocumentStoreFactory,
    DocumentStoreWriteError,
)


def make_settings(**sections) -> Settings:
    settings = Settings(
        store=StoreConfig(
            provider="mongodb",
            uri="mongodb://localhost:27017/",
            database="demo",
            collection="people",
        )
    )
    for name, value in sections.items():
        setattr(settings, name, value)
    return settings


def no_sleep(seconds: float) -> None:
    pass


class TestBuildParser:
    """Tests for argument parsing."""

    def test_all_options(self):
        args = main.build_parser().parse_args(
            [
                "--uri", "mongodb://db:27017/",
                "-d", "crm",
                "-c", "people",
                "-b", "name.name",
                "--build", "name.firstName",
                "-s", "Jon",
                "-s", "Zzyx",
                "-i",
                "--log-level", "DEBUG",
            ]
        )

        assert args.uri == "mongodb://db:27017/"
        assert args.db_name == "crm"
        assert args.collection_name == "people"
        assert args.fields == ["name.name", "name.firstName"]
        assert args.predicates == ["Jon", "Zzyx"]
        assert args.index is True
        assert args.log_level == "DEBUG"

    def test_defaults_leave_settings_untouched(self):
        args = main.build_parser().parse_args([])
        overrides = main.overrides_from_args(args)

        assert args.settings == main.SETTINGS_PATH
        assert overrides["store"] == {"uri": None, "database": None, "collection": None}
        assert overrides["soundex"]["fields"] is None
        assert overrides["search"]["predicates"] is None
        assert overrides["index"]["build"] is None

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main.build_parser().parse_args(["-V"])
        assert exc_info.value.code == 0
        assert "Fuzzy Search Demo 1.0" in capsys.readouterr().out


class TestRun:
    """Tests for run() with an in-memory store."""

    def test_build_index_and_search(self, make_store, people_documents):
        """Back-fill, index and search in one run; matches go to the output stream."""
        store = make_store(people_documents)
        settings = make_settings(soundex=SoundexConfig(fields=["name.name", "name.firstName"]))
        settings.index.build = True
        settings.search.predicates = ["Jon"]
        out = io.StringIO()

        exit_code = main.run(settings, store_factory=lambda s: store, out=out, sleep=no_sleep)

        lines = out.getvalue().splitlines()
        assert exit_code == main.EXIT_OK
        assert sorted(json.loads(line)["_id"] for line in lines) == [1, 3]
        assert json.loads(lines[0])["soundex"] == ["S530", "J500"]
        assert "soundexIndex" in store.index_names()
        assert store.ping_count == 1
        assert store.closed is True

    def test_search_without_match(self, make_store, people_documents):
        store = make_store(people_documents)
        settings = make_settings(soundex=SoundexConfig(fields=["name.name", "name.firstName"]))
        settings.search.predicates = ["Zzyx"]
        out = io.StringIO()

        exit_code = main.run(settings, store_factory=lambda s: store, out=out, sleep=no_sleep)

        assert exit_code == main.EXIT_OK
        assert out.getvalue() == ""

    def test_ping_only(self, make_store, people_documents):
        """With no phase requested the run only pings."""
        store = make_store(people_documents)

        exit_code = main.run(make_settings(), store_factory=lambda s: store, out=io.StringIO())

        assert exit_code == main.EXIT_OK
        assert store.ping_count == 1
        assert store.bulk_calls == []
        assert store.find_calls == []

    def test_incomplete_backfill_exit_code(self, make_store, people_documents):
        backpressure = DocumentStoreWriteError("no progress", provider="fake", code=82)
        store = make_store(people_documents, write_failures=[backpressure] * 10)
        settings = make_settings(soundex=SoundexConfig(fields=["name.name"]))

        exit_code = main.run(settings, store_factory=lambda s: store, out=io.StringIO(), sleep=no_sleep)

        assert exit_code == main.EXIT_INCOMPLETE

    def test_fatal_write_error_marks_pass_incomplete(self, make_store, people_documents):
        """A failed batch does not stop the index and search phases."""
        fatal = DocumentStoreError("not authorized", provider="fake", code=13)
        store = make_store(people_documents, write_failures=[fatal])
        settings = make_settings(soundex=SoundexConfig(fields=["name.name"]))
        settings.index.build = True
        settings.search.predicates = ["Smith"]
        out = io.StringIO()

        exit_code = main.run(settings, store_factory=lambda s: store, out=out, sleep=no_sleep)

        assert exit_code == main.EXIT_INCOMPLETE
        assert "soundexIndex" in store.index_names()
        assert store.find_calls == [("soundex", ["S530"])]
        assert out.getvalue() == ""
        assert store.closed is True

    def test_scan_failure_exit_code(self, make_store, people_documents):
        store = make_store(people_documents)

        def broken_scan(batch_size=100, max_await_time_ms=5000):
            raise DocumentStoreError("cursor killed", provider="fake")
            yield

        store.scan = broken_scan
        settings = make_settings(soundex=SoundexConfig(fields=["name.name"]))
        settings.search.predicates = ["Smith"]

        exit_code = main.run(settings, store_factory=lambda s: store, out=io.StringIO(), sleep=no_sleep)

        assert exit_code == main.EXIT_ERROR
        assert store.find_calls == []
        assert store.closed is True

    def test_index_conflict(self, make_store):
        store = make_store([])
        store.indexes["soundexIndex"] = "otherField"
        settings = make_settings()
        settings.index.build = True

        exit_code = main.run(settings, store_factory=lambda s: store, out=io.StringIO())

        assert exit_code == main.EXIT_ERROR

    def test_ping_failure(self, make_store):
        store = make_store([])

        def unreachable():
            raise DocumentStoreError("Ping failed: no servers", provider="fake")

        store.ping = unreachable

        exit_code = main.run(make_settings(), store_factory=lambda s: store, out=io.StringIO())

        assert exit_code == main.EXIT_ERROR

    def test_invalid_field_path(self, make_store):
        """Malformed paths fail before any store is created."""
        factory_calls = []
        settings = make_settings(soundex=SoundexConfig(fields=["name"]))

        exit_code = main.run(settings, store_factory=factory_calls.append, out=io.StringIO())

        assert exit_code == main.EXIT_ERROR
        assert factory_calls == []

    def test_missing_database_name(self):
        """No database in the URI or settings is a configuration error; no client is built."""
        main.register_providers()
        settings = make_settings()
        settings.store.database = None

        try:
            with patch("libs.document_store.mongo_store.MongoClient") as mongo_client:
                exit_code = main.run(settings, out=io.StringIO())
        finally:
            DocumentStoreFactory.unregister("mongodb")

        assert exit_code == main.EXIT_ERROR
        mongo_client.assert_not_called()


class TestMain:
    """Tests for main()."""

    def test_options_override_settings_file(self, config_path):
        with patch("main.configure_logger"), patch("main.run", return_value=0) as run:
            exit_code = main.main(
                [
                    "--settings", str(config_path / "settings.yaml"),
                    "-c", "people",
                    "-d", "crm",
                    "-b", "name.name",
                    "-s", "Jon",
                    "-i",
                ]
            )

        settings = run.call_args.args[0]
        assert exit_code == 0
        assert settings.store.collection == "people"
        assert settings.store.database == "crm"
        assert settings.soundex.fields == ["name.name"]
        assert settings.search.predicates == ["Jon"]
        assert settings.index.build is True

    def test_registers_mongodb_provider(self, config_path):
        DocumentStoreFactory.unregister("mongodb")
        try:
            with patch("main.configure_logger"), patch("main.run", return_value=0):
                main.main(["--settings", str(config_path / "settings.yaml")])
            assert DocumentStoreFactory.has_provider("mongodb")
        finally:
            DocumentStoreFactory.unregister("mongodb")

    def test_missing_settings_file(self, tmp_path):
        with patch("main.configure_logger") as configure, patch("main.run") as run:
            exit_code = main.main(["--settings", str(tmp_path / "missing.yaml")])

        assert exit_code == main.EXIT_ERROR
        run.assert_not_called()
        configure.assert_not_called()

    def test_invalid_settings_value(self, config_path):
        with patch("main.configure_logger"), patch("main.run") as run:
            exit_code = main.main(
                ["--settings", str(config_path / "settings.yaml"), "--uri", ""]
            )

        assert exit_code == main.EXIT_ERROR
        run.assert_not_called()
