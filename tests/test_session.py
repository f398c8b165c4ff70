import threading

import pytest

from levelchunk.codec.constants import MetaEntry
from levelchunk.codec.errors import EditError
from levelchunk.codec.level import decode_level
from levelchunk.editing.session import EditSession, SessionOptions

from level_factory import flat_bytes, image, level_bytes, solid_flat


def _session(**options):
    level = decode_level(
        level_bytes(
            flats=[solid_flat(1, 2, 1, [0, 2]), flat_bytes(flat_id=4)],
            bumps=[image(1), image(2), image(1)],
            padding=100,
        )
    )
    return EditSession(level, SessionOptions(**options))


def test_nested_edit_refused():
    session = _session()
    with session.edit("outer"):
        assert session.busy
        with pytest.raises(EditError) as exc:
            session.reindex()
        assert exc.value.code == "E_BUSY"
    assert not session.busy


def test_concurrent_edit_refused():
    session = _session()
    started = threading.Event()
    release = threading.Event()
    errors = []

    def hold():
        with session.edit("holder"):
            started.set()
            release.wait(5)

    t = threading.Thread(target=hold)
    t.start()
    started.wait(5)
    try:
        session.clone(4)
    except EditError as e:
        errors.append(e.code)
    finally:
        release.set()
        t.join()
    assert errors == ["E_BUSY"]


def test_session_operations():
    session = _session()
    result = session.reindex()
    assert result.populated_count == 1
    clone = session.clone(4)
    assert clone.declared_id == 5
    assert session.set_meta(1, 1, 0, MetaEntry.WAYPOINT, 3) == 0


def test_unknown_flat():
    with pytest.raises(EditError) as exc:
        _session().clone(99)
    assert exc.value.code == "E_NOT_FOUND"


def test_capacity_reports_can_be_muted(silent_reporter):
    session = _session(report_capacity=False)
    session.level.capacity.register_delta(500)
    assert silent_reporter.deficits == []


def test_session_texture_fill_and_respawn():
    session = _session()
    assert session.set_texture(4, 0, 0, 9, 2) == (100, 0)
    assert session.level.find_flat(4).terrain_heights[0][0] == 2
    assert session.fill_meta(1, MetaEntry.WAYPOINT, 1) == 2
    assert session.set_respawn(1, 1, 0, px=2, py=3, direction=5) == 0
    assert len(session.level.odds) == 1
    assert session.set_respawn(1, 0, 0) is None
    assert session.flat(1).meta_value(0, 0, MetaEntry.TWO) == 2
    assert not session.busy
