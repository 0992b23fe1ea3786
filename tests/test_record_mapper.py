"""Tests for reconciling stored rows into CustomerRecords."""

from datetime import datetime, timezone

from roster.presentation.record_mapper import from_stored
from roster.schemas.customer_schema import CallStatus, CustomerStatus


class TestNameReconciliation:
    def test_legacy_name_split(self):
        record = from_stored({"name": "John Q Public"})
        assert record.first_name == "John"
        assert record.last_name == "Q Public"

    def test_explicit_names_preferred(self):
        record = from_stored({"name": "Johnny", "firstName": "John", "lastName": "Public"})
        assert (record.first_name, record.last_name) == ("John", "Public")

    def test_snake_case_names(self):
        record = from_stored({"first_name": "Ada", "last_name": "Lovelace"})
        assert record.name == "Ada Lovelace"

    def test_only_last_name_stored(self):
        record = from_stored({"name": "Ignored Name", "lastName": "Hopper"})
        assert record.first_name == ""
        assert record.last_name == "Hopper"


class TestNotesReconciliation:
    def test_address_like_notes_fill_address(self):
        record = from_stored({"name": "A B", "notes": "123 Main St, Springfield"})
        assert record.address == "123 Main St, Springfield"
        assert record.comments == ""

    def test_comment_like_notes_fill_comments(self):
        record = from_stored({"name": "A B", "notes": "Called twice, no answer"})
        assert record.comments == "Called twice, no answer"
        assert record.address == ""

    def test_explicit_address_not_overwritten(self):
        record = from_stored({
            "name": "A B", "address": "1 Real Rd", "notes": "44 Harbor Rd",
        })
        assert record.address == "1 Real Rd"
        assert record.comments == ""

    def test_explicit_comments_not_overwritten(self):
        record = from_stored({"name": "A B", "comments": "VIP", "notes": "Prefers email"})
        assert record.comments == "VIP"
        assert record.address == ""

    def test_both_explicit_notes_ignored(self):
        record = from_stored({
            "name": "A B", "address": "1 Real Rd", "comments": "VIP", "notes": "Other",
        })
        assert (record.address, record.comments) == ("1 Real Rd", "VIP")

    def test_notes_never_fill_both(self):
        for notes in ("123 Main St, Springfield", "Called twice, no answer", "x"):
            record = from_stored({"name": "A B", "notes": notes})
            assert not (record.address and record.comments)


class TestStatusReconciliation:
    def test_defaults(self):
        record = from_stored({"name": "A B"})
        assert record.status == CustomerStatus.PENDING
        assert record.call_status == CallStatus.NOT_CALLED
        assert record.archived is False
        assert record.previous_status is None

    def test_known_status_kept(self):
        assert from_stored({"status": "follow_up"}).status == CustomerStatus.FOLLOW_UP

    def test_unknown_status_falls_back_to_pending(self):
        assert from_stored({"status": "mystery"}).status == CustomerStatus.PENDING

    def test_call_status_camel_and_snake(self):
        assert from_stored({"callStatus": "called"}).call_status == CallStatus.CALLED
        assert from_stored({"call_status": "voice_mail"}).call_status == CallStatus.VOICE_MAIL

    def test_archived_flag(self):
        record = from_stored({
            "status": "archived", "previous_status": "interested", "archived": True,
        })
        assert record.archived is True
        assert record.previous_status == CustomerStatus.INTERESTED

    def test_archived_status_implies_flag(self):
        assert from_stored({"status": "archived"}).archived is True

    def test_assigned_to(self):
        assert from_stored({"assigned_to": "emp-7"}).assigned_to == "emp-7"


class TestCreatedAt:
    def test_iso_timestamp_parsed(self):
        record = from_stored({"id": 3, "created_at": "2024-05-01T12:00:00+00:00"})
        assert record.created_at == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
        assert record.id == 3

    def test_camel_case_timestamp(self):
        record = from_stored({"createdAt": "2024-05-01T12:00:00Z"})
        assert record.created_at.year == 2024

    def test_garbage_timestamp_dropped(self):
        record = from_stored({"name": "A B", "created_at": "last tuesday"})
        assert record.created_at is None
        assert record.name == "A B"

    def test_non_integer_id_kept_as_text(self):
        record = from_stored({"id": 1.5, "name": "A B", "created_at": "garbage"})
        assert record.id == "1.5"
        assert record.name == "A B"

    def test_integer_and_string_ids_unchanged(self):
        assert from_stored({"id": 7}).id == 7
        assert from_stored({"id": "cus_7"}).id == "cus_7"
