import uuid

import pytest

from sswarm.observer import (
    DEFAULT_EXPIRE_TIME_S,
    BaseObserver,
    generate_uuid_from_str,
    observer_id_to_str,
    str_to_observer_id,
)


def test_new_observer_not_expired():
    obs = BaseObserver("k_observer:ping")
    assert not obs.is_expired()
    assert 0 < obs.expire_time_left() <= DEFAULT_EXPIRE_TIME_S


def test_destruct_self_expires():
    obs = BaseObserver("k_observer:ping")
    obs.destruct_self()
    assert obs.is_expired()


def test_expire_flag_forces_expiry():
    obs = BaseObserver("t")
    obs.expire_flag = True
    assert obs.is_expired()


def test_extend_expire_at():
    obs = BaseObserver("t")
    obs.destruct_self()
    obs.extend_expire_at(DEFAULT_EXPIRE_TIME_S * 5)
    assert not obs.is_expired()
    assert obs.expire_time_left() > DEFAULT_EXPIRE_TIME_S


def test_type_name_and_explicit_id():
    oid = uuid.uuid4()
    obs = BaseObserver("k_observer:find_node", oid)
    assert obs.type_name == "k_observer:find_node"
    assert obs.id == oid
    assert obs.id_str() == observer_id_to_str(oid)


def test_nil_id_replaced():
    obs = BaseObserver("t", uuid.UUID(int=0))
    assert obs.id.int > 0
    assert str_to_observer_id(obs.id_str()) == obs.id


def test_ids_unique_and_equality_by_id():
    a, b = BaseObserver("t"), BaseObserver("t")
    assert a.id != b.id
    assert a != b
    assert BaseObserver("x", a.id) == a
    assert len({a, b, BaseObserver("y", a.id)}) == 2


def test_id_string_round_trip():
    oid = uuid.uuid4()
    assert str_to_observer_id(observer_id_to_str(oid)) == oid


def test_str_to_observer_id_rejects_bad():
    with pytest.raises(ValueError):
        str_to_observer_id("not-a-uuid")


def test_generate_uuid_from_str_deterministic():
    assert generate_uuid_from_str("seed") == generate_uuid_from_str("seed")
    assert generate_uuid_from_str("seed") != generate_uuid_from_str("other")
    assert generate_uuid_from_str("seed").version == 4