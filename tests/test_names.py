"""Tests for file name collision handling."""

import threading
import uuid

from docbridge.migration.documents import MessageDocument, ReferralDocument
from docbridge.migration.names import NameRegistry, bump_named_in_error, enforce_unique_file_names


def make_document(file_name: str, message: bool = False):
    common = dict(
        id=uuid.uuid4(),
        title="t",
        content="",
        mime_type="application/pdf",
        document_class="medical",
        base_file_name=file_name,
    )
    if message:
        return MessageDocument(message_id="7", **common)
    return ReferralDocument(**common)


class TestDocumentFileName:
    def test_suffix_goes_before_extension(self):
        document = make_document("report.pdf")
        assert document.file_name == "report.pdf"
        assert document.bump_suffix() == "report(1).pdf"
        assert document.bump_suffix() == "report(2).pdf"

    def test_name_without_extension(self):
        document = make_document("README")
        document.bump_suffix()
        assert document.file_name == "README(1)"

    def test_only_last_extension_is_kept_apart(self):
        document = make_document("archive.tar.gz")
        document.bump_suffix()
        assert document.file_name == "archive.tar(1).gz"


class TestNameRegistry:
    def test_claim_free_name(self):
        registry = NameRegistry()
        owner = uuid.uuid4()
        assert registry.claim("a.pdf", owner) is True
        assert "a.pdf" in registry
        assert registry.owner("a.pdf") == owner

    def test_claim_by_same_owner_is_idempotent(self):
        registry = NameRegistry()
        owner = uuid.uuid4()
        registry.claim("a.pdf", owner)
        assert registry.claim("a.pdf", owner) is True
        assert len(registry) == 1

    def test_claim_by_other_owner_fails(self):
        registry = NameRegistry()
        registry.claim("a.pdf", uuid.uuid4())
        assert registry.claim("a.pdf", uuid.uuid4()) is False

    def test_seeded_names_have_no_owner(self):
        registry = NameRegistry(["a.pdf"])
        assert registry.owner("a.pdf") is None
        assert registry.claim("a.pdf", uuid.uuid4()) is False

    def test_concurrent_claims_have_one_winner(self):
        registry = NameRegistry()
        winners = []
        barrier = threading.Barrier(8)

        def claim():
            owner = uuid.uuid4()
            barrier.wait()
            if registry.claim("same.pdf", owner):
                winners.append(owner)

        threads = [threading.Thread(target=claim) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(winners) == 1


class TestEnforceUniqueFileNames:
    def test_second_duplicate_gets_suffix(self):
        first, second = make_document("report.pdf"), make_document("report.pdf")
        renames = enforce_unique_file_names([first, second], NameRegistry())

        assert first.file_name == "report.pdf"
        assert second.file_name == "report(1).pdf"
        assert renames == 1

    def test_three_duplicates(self):
        documents = [make_document("a.txt") for _ in range(3)]
        enforce_unique_file_names(documents, NameRegistry())
        assert [d.file_name for d in documents] == ["a.txt", "a(1).txt", "a(2).txt"]

    def test_skips_names_claimed_earlier(self):
        registry = NameRegistry(["report.pdf", "report(1).pdf"])
        document = make_document("report.pdf")
        enforce_unique_file_names([document], registry)
        assert document.file_name == "report(2).pdf"

    def test_idempotent_on_resolved_block(self):
        documents = [make_document("report.pdf") for _ in range(3)]
        registry = NameRegistry()
        enforce_unique_file_names(documents, registry)
        names = [d.file_name for d in documents]

        assert enforce_unique_file_names(documents, registry) == 0
        assert [d.file_name for d in documents] == names

    def test_names_unique_after_resolution(self):
        documents = [make_document(name) for name in ["x.pdf", "y.pdf", "x.pdf", "x(1).pdf"]]
        enforce_unique_file_names(documents, NameRegistry())
        names = [d.file_name for d in documents]
        assert len(set(names)) == len(names)

    def test_variants_share_the_same_namespace(self):
        referral, message = make_document("r.pdf"), make_document("r.pdf", message=True)
        enforce_unique_file_names([referral, message], NameRegistry())
        assert message.file_name == "r(1).pdf"


class TestBumpNamedInError:
    def test_bumps_documents_named_in_detail(self):
        first, second = make_document("report.pdf"), make_document("other.pdf")
        bumped = bump_named_in_error(
            [first, second], "A file with the name report.pdf already exists."
        )

        assert bumped == [first]
        assert first.file_name == "report(1).pdf"
        assert second.file_name == "other.pdf"

    def test_empty_detail_bumps_nothing(self):
        document = make_document("report.pdf")
        assert bump_named_in_error([document], "") == []
        assert document.file_name == "report.pdf"

    def test_unrelated_detail_bumps_nothing(self):
        document = make_document("report.pdf")
        assert bump_named_in_error([document], "quota exceeded") == []
