"""
Tests for the Drip payload models

Covers custom field key normalization, Subscriber locking and wire payloads.
"""
import copy
import pytest
from concurrent.futures import ThreadPoolExecutor
from pydantic import ValidationError

from models import DripBaseModel, Event, Subscriber, TagAssociation, normalize_key, normalized_fields
from factories import EventFactory, SubscriberFactory, TagFactory


class TestNormalizeKey:
    """Test custom field key normalization."""

    @pytest.mark.parametrize("key,expected", [
        ("$Foo Bar", "foo_bar"),
        ("First Name", "first_name"),
        ("$$price$", "price"),
        ("ALREADY_LOWER", "already_lower"),
        ("  padded ", "__padded_"),
        ("", ""),
    ])
    def test_normalize_key(self, key, expected):
        """Test that $ is stripped, spaces become underscores and case is lowered."""
        assert normalize_key(key) == expected

    @pytest.mark.parametrize("key", ["$Foo Bar", "Mixed $Case Key", "plain", "a b c"])
    def test_normalize_key_is_idempotent(self, key):
        """Test that normalizing twice changes nothing."""
        once = normalize_key(key)
        assert normalize_key(once) == once

    def test_normalized_fields_preserves_values_and_types(self):
        """Test that only keys change."""
        fields = {"$First Name": "Jo", "Age": 42, "Score": 9.5, "Active": True, "Prefs": {"a": [1, 2]}}

        result = normalized_fields(fields)

        assert result == {"first_name": "Jo", "age": 42, "score": 9.5, "active": True, "prefs": {"a": [1, 2]}}
        assert isinstance(result["age"], int)
        assert fields["$First Name"] == "Jo"  # input untouched

    def test_normalized_fields_handles_none(self):
        """Test that missing fields normalize to an empty dict."""
        assert normalized_fields(None) == {}


class TestSubscriber:
    """Test Subscriber construction and mutation."""

    def test_new_subscriber_is_empty(self):
        """Test Subscriber.new creates an empty subscriber."""
        subscriber = Subscriber.new("a@example.com")

        assert subscriber.email == "a@example.com"
        assert subscriber.custom_fields == {}
        assert subscriber.tags == []

    def test_construction_normalizes_keys(self):
        """Test that keys are normalized on construction."""
        subscriber = SubscriberFactory.create(custom_fields={"$First Name": "Jo", "Last Name": "Doe"})

        assert subscriber.custom_fields == {"first_name": "Jo", "last_name": "Doe"}

    def test_assignment_normalizes_keys(self):
        """Test that reassigning custom_fields normalizes keys too."""
        subscriber = SubscriberFactory.create()

        subscriber.custom_fields = {"$Plan Name": "pro"}

        assert subscriber.custom_fields == {"plan_name": "pro"}

    def test_add_custom_field_normalizes_key(self):
        """Test that the single-field mutator applies the same normalization."""
        subscriber = Subscriber.new("a@example.com")

        subscriber.add_custom_field("$First Name", "Jo")
        subscriber.add_custom_field("Visits", 3)

        assert subscriber.custom_fields == {"first_name": "Jo", "visits": 3}

    def test_add_custom_field_overwrites(self):
        """Test that keys differing only by normalization collide."""
        subscriber = Subscriber.new("a@example.com")

        subscriber.add_custom_field("First Name", "Jo")
        subscriber.add_custom_field("$first name", "Joanna")

        assert subscriber.custom_fields == {"first_name": "Joanna"}

    def test_concurrent_add_custom_field_loses_nothing(self):
        """Test that many threads adding distinct keys to one subscriber lose none."""
        subscriber = Subscriber.new("a@example.com")
        count = 200

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(lambda i: subscriber.add_custom_field(f"Field {i}", i), range(count)))

        assert len(subscriber.custom_fields) == count
        for i in range(count):
            assert subscriber.custom_fields[f"field_{i}"] == i

    @pytest.mark.parametrize("make_copy", [
        lambda s: s.model_copy(deep=True),
        lambda s: copy.deepcopy(s),
    ], ids=["model_copy", "deepcopy"])
    def test_deep_copy_is_independent(self, make_copy):
        """Test that a deep copy gets its own lock and its own field mapping."""
        original = SubscriberFactory.create(
            custom_fields={"Plan": "pro", "Prefs": {"channels": ["email"]}},
            tags=["trial"],
        )

        clone = make_copy(original)
        clone.add_custom_field("Seats", 5)
        clone.custom_fields["prefs"]["channels"].append("sms")
        clone.tags.append("vip")

        assert clone.email == original.email
        assert clone._custom_field_lock is not original._custom_field_lock
        assert clone.custom_fields == {"plan": "pro", "prefs": {"channels": ["email", "sms"]}, "seats": 5}
        assert original.custom_fields == {"plan": "pro", "prefs": {"channels": ["email"]}}
        assert original.tags == ["trial"]

    def test_deep_copy_of_new_subscriber(self):
        """Test copying a freshly created subscriber."""
        clone = Subscriber.new("a@example.com").model_copy(deep=True)

        assert clone.to_payload() == {"email": "a@example.com"}

    def test_each_subscriber_has_its_own_lock(self):
        """Test that the field lock is per instance."""
        first = Subscriber.new("a@example.com")
        second = Subscriber.new("b@example.com")

        assert first._custom_field_lock is not second._custom_field_lock

    def test_email_is_required(self):
        """Test that a subscriber without email is rejected."""
        with pytest.raises(ValidationError):
            Subscriber(custom_fields={"a": 1})

    def test_non_mapping_custom_fields_rejected(self):
        """Test that custom fields must be a mapping."""
        with pytest.raises(ValidationError):
            Subscriber(email="a@example.com", custom_fields=["not", "a", "mapping"])


class TestPayloads:
    """Test wire representations."""

    def test_subscriber_payload_omits_empty_collections(self):
        """Test that empty custom fields and tags are left out."""
        assert Subscriber.new("a@example.com").to_payload() == {"email": "a@example.com"}

    def test_subscriber_payload_full(self):
        """Test a subscriber with fields and tags."""
        subscriber = SubscriberFactory.create(custom_fields={"$Plan": "pro"}, tags=["trial", "vip"])

        assert subscriber.to_payload() == {
            "email": "test@example.com",
            "custom_fields": {"plan": "pro"},
            "tags": ["trial", "vip"],
        }

    def test_subscriber_payload_is_a_snapshot(self):
        """Test that later mutations do not leak into an earlier payload."""
        subscriber = SubscriberFactory.create(custom_fields={"Plan": "pro"})

        payload = subscriber.to_payload()
        subscriber.add_custom_field("Seats", 5)

        assert payload["custom_fields"] == {"plan": "pro"}

    def test_event_payload(self):
        """Test event wire representation."""
        assert EventFactory.create(action="Purchased").to_payload() == {
            "email": "test@example.com",
            "action": "Purchased",
        }

    def test_tag_payload(self):
        """Test tag association wire representation."""
        assert TagFactory.create(tag="vip").to_payload() == {"email": "test@example.com", "tag": "vip"}

    def test_repr(self):
        """Test that repr shows the field values."""
        assert repr(TagFactory.create()) == "TagAssociation(email='test@example.com', tag='customer')"

    def test_models_share_base(self):
        """Test that all payload models derive from the common base."""
        for model in (Subscriber, Event, TagAssociation):
            assert issubclass(model, DripBaseModel)
