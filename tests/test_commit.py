"""Tests for block commits, rollback and rename-retry."""

import pytest
from conftest import DUPLICATE_CODE, FakeDocumentStore

from docbridge.client.exceptions import CommitError, DuplicateNameError, RenameLimitExceededError
from docbridge.migration.commit import CommitManager
from docbridge.migration.documents import CommitOutcome
from docbridge.migration.names import NameRegistry
from docbridge.migration.translator import DocumentTranslator


@pytest.fixture
def translate(roles):
    translator = DocumentTranslator(roles)
    return translator.translate_block


class TestCommit:
    def test_success_on_first_attempt(self, item_factory, translate):
        store = FakeDocumentStore()
        documents = translate([item_factory("a.pdf"), item_factory("b.pdf")])

        report = CommitManager(store, DUPLICATE_CODE).commit(documents, NameRegistry())

        assert report.outcome.success
        assert report.attempts == 1
        assert report.renames == 0
        assert store.stored_names() == {"a.pdf", "b.pdf"}
        assert store.remove_calls == []

    def test_in_block_duplicates_resolved_before_first_attempt(self, item_factory, translate):
        store = FakeDocumentStore()
        documents = translate([item_factory("report.pdf"), item_factory("report.pdf")])

        report = CommitManager(store, DUPLICATE_CODE).commit(documents, NameRegistry())

        assert store.add_calls == [["report.pdf", "report(1).pdf"]]
        assert report.attempts == 1
        assert report.renames == 1

    def test_store_duplicate_is_renamed_and_retried(self, item_factory, translate):
        store = FakeDocumentStore(existing_names={"report.pdf"})
        documents = translate([item_factory("first.pdf"), item_factory("report.pdf")])

        report = CommitManager(store, DUPLICATE_CODE).commit(documents, NameRegistry())

        assert report.attempts == 2
        assert store.add_calls == [
            ["first.pdf", "report.pdf"],
            ["first.pdf", "report(1).pdf"],
        ]
        assert store.remove_calls == [[d.id for d in documents]]
        assert {"first.pdf", "report(1).pdf"} <= store.stored_names()

    def test_rollback_removes_partially_added_documents(self, item_factory, translate):
        store = FakeDocumentStore(existing_names={"b.pdf"}, partial_adds=True)
        documents = translate([item_factory("a.pdf"), item_factory("b.pdf")])
        manager = CommitManager(store, DUPLICATE_CODE)

        manager.commit(documents, NameRegistry())

        # "a.pdf" was added, rolled back, then added again with the renamed block
        assert len(store.remove_calls) == 1
        assert sorted(store.stored_names()) == ["a.pdf", "b(1).pdf"]

    def test_repeated_duplicates_keep_bumping(self, item_factory, translate):
        store = FakeDocumentStore(existing_names={"r.pdf", "r(1).pdf", "r(2).pdf"})
        documents = translate([item_factory("r.pdf")])

        report = CommitManager(store, DUPLICATE_CODE).commit(documents, NameRegistry())

        assert documents[0].file_name == "r(3).pdf"
        assert report.attempts == 4

    def test_other_failure_rolls_back_and_raises(self, item_factory, translate):
        store = FakeDocumentStore()
        store.scripted = [CommitOutcome.failed("QuotaExceeded", "site is full")]
        documents = translate([item_factory()])

        with pytest.raises(CommitError) as exc_info:
            CommitManager(store, DUPLICATE_CODE).commit(documents, NameRegistry())

        assert not isinstance(exc_info.value, DuplicateNameError)
        assert exc_info.value.error_code == "QuotaExceeded"
        assert exc_info.value.document_ids == [documents[0].id]
        assert store.remove_calls == [[documents[0].id]]
        assert len(store.add_calls) == 1

    def test_store_exception_rolls_back_and_raises(self, item_factory, translate):
        store = FakeDocumentStore()
        store.scripted = [RuntimeError("connection reset")]
        documents = translate([item_factory()])

        with pytest.raises(CommitError) as exc_info:
            CommitManager(store, DUPLICATE_CODE).commit(documents, NameRegistry())

        assert exc_info.value.error_code == "RuntimeError"
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert store.remove_calls == [[documents[0].id]]

    def test_numeric_error_code_matches_text(self, item_factory, translate):
        store = FakeDocumentStore(existing_names={"a.pdf"}, duplicate_code="-2130575257")
        documents = translate([item_factory("a.pdf")])

        report = CommitManager(store, -2130575257).commit(documents, NameRegistry())

        assert report.attempts == 2
        assert documents[0].file_name == "a(1).pdf"


class TestRenameLimit:
    def test_gives_up_after_max_attempts(self, item_factory, translate):
        store = FakeDocumentStore(existing_names={f"r({i}).pdf" for i in range(1, 10)} | {"r.pdf"})
        documents = translate([item_factory("r.pdf")])

        with pytest.raises(RenameLimitExceededError):
            CommitManager(store, DUPLICATE_CODE, max_attempts=3).commit(documents, NameRegistry())

        assert len(store.add_calls) == 3
        assert len(store.remove_calls) == 3

    def test_gives_up_when_detail_names_nothing_in_block(self, item_factory, translate):
        store = FakeDocumentStore()
        store.scripted = [CommitOutcome.failed(DUPLICATE_CODE, "name clash somewhere")]
        documents = translate([item_factory("a.pdf")])

        with pytest.raises(RenameLimitExceededError) as exc_info:
            CommitManager(store, DUPLICATE_CODE).commit(documents, NameRegistry())

        assert isinstance(exc_info.value, CommitError)
        assert len(store.add_calls) == 1

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            CommitManager(FakeDocumentStore(), DUPLICATE_CODE, max_attempts=0)


class TestRegistryScope:
    def test_shared_registry_renames_across_blocks(self, item_factory, translate):
        store = FakeDocumentStore()
        manager = CommitManager(store, DUPLICATE_CODE)
        registry = NameRegistry()

        first = translate([item_factory("same.pdf")])
        second = translate([item_factory("same.pdf")])
        manager.commit(first, registry)
        manager.commit(second, registry)

        assert first[0].file_name == "same.pdf"
        assert second[0].file_name == "same(1).pdf"

    def test_recommit_after_rename_keeps_registry_consistent(self, item_factory, translate):
        store = FakeDocumentStore(existing_names={"x.pdf"})
        registry = NameRegistry()
        documents = translate([item_factory("x.pdf"), item_factory("x.pdf")])

        CommitManager(store, DUPLICATE_CODE).commit(documents, registry)

        names = [d.file_name for d in documents]
        assert len(set(names)) == 2
        assert all(registry.owner(d.file_name) == d.id for d in documents)
