import pytest

from polymeta.app import HasMetadata, MetadataService
from polymeta.database import AnnotatableOwner, MetaRecord, OwnerRef


class User(HasMetadata):
    __meta_type__ = "user"

    def __init__(self, id: int | None) -> None:
        self.id = id


def _count_writes(monkeypatch, service: MetadataService) -> dict[str, int]:
    repo = service.meta_repo
    calls = {"create": 0, "update": 0}
    create_meta = repo.create_meta
    update_meta = repo.update_meta

    def counting_create(**kwargs):
        calls["create"] += 1
        return create_meta(**kwargs)

    def counting_update(record):
        calls["update"] += 1
        return update_meta(record)

    monkeypatch.setattr(repo, "create_meta", counting_create)
    monkeypatch.setattr(repo, "update_meta", counting_update)
    return calls


@pytest.mark.parametrize(
    "value",
    [
        "brown",
        "ünïcode ✓",
        42,
        2.5,
        True,
        None,
        [1, "two", {"three": 3}],
        {"nested": {"list": [1, 2], "flag": False}, "empty": {}},
    ],
)
def test_value_round_trip(service: MetadataService, value) -> None:
    owner = OwnerRef(owner_type="user", owner_id=1)

    service.save_meta(owner, "attr", value)

    assert service.get_meta(owner, "attr", default="absent") == value
    assert service.has_meta(owner, "attr") is True


def test_save_meta_returns_record(service: MetadataService) -> None:
    owner = OwnerRef(owner_type="user", owner_id=7)

    meta = service.save_meta(owner, "hair_color", "brown")

    assert isinstance(meta, MetaRecord)
    assert (meta.owner_type, meta.owner_id, meta.key, meta.value) == ("user", "7", "hair_color", "brown")
    fetched = service.get_meta_obj(owner, "hair_color")
    assert fetched is not None
    assert fetched.id == meta.id


def test_saving_same_value_writes_once(service: MetadataService, monkeypatch) -> None:
    owner = OwnerRef(owner_type="user", owner_id=1)
    calls = _count_writes(monkeypatch, service)

    first = service.save_meta(owner, "prefs", {"b": 2, "a": [1, 2]})
    second = service.save_meta(owner, "prefs", {"a": [1, 2], "b": 2})

    assert calls == {"create": 1, "update": 0}
    assert second.id == first.id


def test_equality_is_type_exact(service: MetadataService, monkeypatch) -> None:
    owner = OwnerRef(owner_type="user", owner_id=1)
    calls = _count_writes(monkeypatch, service)

    service.save_meta(owner, "flag", 1)
    service.save_meta(owner, "flag", True)

    assert calls == {"create": 1, "update": 1}
    assert service.get_meta(owner, "flag") is True


def test_mixed_dict_keys_compare_as_stored(service: MetadataService, monkeypatch) -> None:
    owner = OwnerRef(owner_type="user", owner_id=1)
    calls = _count_writes(monkeypatch, service)

    service.save_meta(owner, "mapping", {1: "a", "b": 2})
    service.save_meta(owner, "mapping", {1: "a", "b": 3})
    service.save_meta(owner, "mapping", {"b": 3, "1": "a"})

    assert calls == {"create": 1, "update": 1}
    assert service.get_meta(owner, "mapping") == {"1": "a", "b": 3}


def test_upsert_keeps_a_single_record(service: MetadataService) -> None:
    owner = OwnerRef(owner_type="user", owner_id=1)

    first = service.save_meta(owner, "hair_color", "brown")
    second = service.save_meta(owner, "hair_color", "pink")

    assert second.id == first.id
    assert service.meta_repo.count_metas("user", "1", "hair_color") == 1
    assert service.get_meta(owner, "hair_color") == "pink"


def test_has_meta_before_and_after_save(service: MetadataService) -> None:
    owner = OwnerRef(owner_type="user", owner_id=1)

    assert service.has_meta(owner, "nickname") is False
    service.save_meta(owner, "nickname", "bob")
    assert service.has_meta(owner, "nickname") is True


def test_save_metas(service: MetadataService) -> None:
    owner = OwnerRef(owner_type="user", owner_id=1)

    service.save_metas(owner, {"a": 1, "b": 2})

    assert service.has_meta(owner, "a")
    assert service.has_meta(owner, "b")
    assert service.get_meta(owner, "a") == 1
    assert service.get_meta(owner, "b") == 2


@pytest.mark.parametrize("metas", [None, {}])
def test_save_metas_empty_is_noop(service: MetadataService, monkeypatch, metas) -> None:
    calls = _count_writes(monkeypatch, service)

    service.save_metas(OwnerRef(owner_type="user", owner_id=1), metas)

    assert calls == {"create": 0, "update": 0}


def test_get_meta_default(service: MetadataService) -> None:
    owner = OwnerRef(owner_type="user", owner_id=1)

    assert service.get_meta(owner, "missing", default="fallback") == "fallback"
    assert service.get_meta(owner, "missing") is None
    assert service.get_meta_obj(owner, "missing") is None


def test_get_metas(service: MetadataService) -> None:
    owner = OwnerRef(owner_type="user", owner_id=1)
    assert service.get_metas(owner) == {}

    service.save_metas(owner, {"a": 1, "b": [2], "c": {"d": 3}})

    assert service.get_metas(owner) == {"a": 1, "b": [2], "c": {"d": 3}}
    assert service.get_metas(owner, ["a", "c", "missing"]) == {"a": 1, "c": {"d": 3}}
    assert service.get_metas(owner, []) == {"a": 1, "b": [2], "c": {"d": 3}}


def test_delete_meta(service: MetadataService) -> None:
    owner = OwnerRef(owner_type="user", owner_id=1)
    service.save_metas(owner, {"a": 1, "b": 2, "c": 3, "d": 4})

    assert service.delete_meta(owner, "a") == 1
    assert service.get_metas(owner) == {"b": 2, "c": 3, "d": 4}

    assert service.delete_meta(owner, ["b", "c"]) == 2
    assert service.get_metas(owner) == {"d": 4}

    assert service.delete_meta(owner, "missing") == 0


def test_delete_all_meta_only_touches_owner(service: MetadataService) -> None:
    owner = OwnerRef(owner_type="user", owner_id=1)
    other = OwnerRef(owner_type="user", owner_id=2)
    service.save_metas(owner, {"a": 1, "b": 2})
    service.save_metas(other, {"a": 10})

    assert service.delete_all_meta(owner) == 2

    assert service.get_metas(owner) == {}
    assert service.get_metas(other) == {"a": 10}


def test_owners_are_isolated(service: MetadataService) -> None:
    user_1 = OwnerRef(owner_type="user", owner_id=1)
    user_2 = OwnerRef(owner_type="user", owner_id=2)
    post_1 = OwnerRef(owner_type="post", owner_id=1)

    service.save_meta(user_1, "color", "red")
    service.save_meta(user_2, "color", "blue")
    service.save_meta(post_1, "color", "green")

    assert service.get_meta(user_1, "color") == "red"
    assert service.get_meta(user_2, "color") == "blue"
    assert service.get_meta(post_1, "color") == "green"


def test_int_and_str_owner_ids_address_same_rows(service: MetadataService) -> None:
    service.save_meta(OwnerRef(owner_type="user", owner_id=5), "color", "red")

    assert service.get_meta(OwnerRef(owner_type="user", owner_id="5"), "color") == "red"


def test_unserializable_value_propagates(service: MetadataService) -> None:
    owner = OwnerRef(owner_type="user", owner_id=1)

    with pytest.raises(TypeError):
        service.save_meta(owner, "bad", object())
    assert service.has_meta(owner, "bad") is False


def test_mixin_owner(service: MetadataService) -> None:
    user = User(3)
    assert isinstance(user, AnnotatableOwner)
    assert user.meta_owner_type == "user"

    metas = user.metas(service)
    metas.save_meta("hair_color", "brown")
    metas.save_metas({"age": 31})

    assert metas.get_meta("hair_color") == "brown"
    assert metas.get_metas() == {"hair_color": "brown", "age": 31}
    assert metas.has_meta("age")
    assert metas.get_meta_obj("age").value == 31
    assert metas.delete_meta("age") == 1
    assert metas.delete_all_meta() == 1
    assert service.get_metas(OwnerRef(owner_type="user", owner_id=3)) == {}


def test_mixin_defaults_to_class_name() -> None:
    class Invoice(HasMetadata):
        invoice_no = "INV-1"
        __meta_id_attr__ = "invoice_no"

    invoice = Invoice()

    assert invoice.meta_owner_type == "Invoice"
    assert invoice.meta_owner_id == "INV-1"


def test_unsaved_owner_is_rejected(service: MetadataService) -> None:
    with pytest.raises(ValueError, match="no identifier"):
        service.save_meta(User(None), "color", "red")
    with pytest.raises(ValueError, match="empty meta_owner_type"):
        service.get_meta(OwnerRef(owner_type="", owner_id=1), "color")


def test_health(service: MetadataService) -> None:
    service.save_metas(OwnerRef(owner_type="user", owner_id=1), {"a": 1, "b": 2})

    status = service.health()

    assert status["ok"] is True
    assert status["db"]["ok"] is True
    assert status["counts"] == {"meta": 2}
