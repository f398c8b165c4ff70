import pytest

from levelchunk.codec.constants import ChunkKind
from levelchunk.codec.errors import ConsistencyError
from levelchunk.codec.level import decode_level, encode_level
from levelchunk.editing.reindex import (
    canonical_ids,
    plan_reindex,
    reindex_resources,
    usage_counts,
)

from level_factory import flat_bytes, image, level_bytes, meta_cell, solid_flat

A, B, C = image(1), image(2), image(3)
ZERO = image(0)


def _scenario():
    # usage [3, 2, 1, 0] over bumps [A, B, A, C]
    data = level_bytes(
        flats=[solid_flat(1, 3, 2, [0, 0, 0, 1, 1, 2]), flat_bytes(flat_id=2)],
        bumps=[A, B, A, C],
    )
    return data, decode_level(data)


def _bump_refs(level):
    return [cell[6] for f in level.flats for _, _, cell in f.meta_cells()]


def _referenced_payloads(level):
    return [bytes(level.bumps.entries[r].data) for r in _bump_refs(level)]


def test_canonical_ids_prefer_lowest_index():
    assert canonical_ids([A, B, A, B, C]) == [0, 1, 0, 1, 4]


def test_plan_maps_duplicates_to_canonical():
    plan = plan_reindex(ChunkKind.BUMP_IMAGE, [A, B, A, C], [3, 2, 1, 0])
    assert plan.mapping == {0: 0, 1: 1, 2: 0}
    assert plan.distinct_count == 3
    assert plan.reclaimed == 1
    assert plan.populated_count == 2


def test_unused_canonical_with_used_duplicate_is_kept():
    plan = plan_reindex(ChunkKind.BUMP_IMAGE, [A, B, A], [0, 1, 2])
    assert plan.mapping == {0: 0, 1: 1, 2: 0}
    assert plan.populated_count == 2


def test_reindex_scenario():
    _, level = _scenario()
    result = reindex_resources(level)
    assert level.bumps.payloads() == [A, B, ZERO, ZERO]
    assert _bump_refs(level) == [0, 0, 0, 1, 1, 0]
    assert result.usage_before == [3, 2, 1, 0]
    assert result.usage_after == [4, 2, 0, 0]
    assert result.distinct_count == 3
    assert result.reclaimed == 1
    assert result.populated_count == 2
    assert result.free_count == 2
    assert result.changed
    assert len(level.bumps) == 4


def test_reindex_preserves_referenced_content():
    _, level = _scenario()
    before = _referenced_payloads(level)
    result = reindex_resources(level)
    assert _referenced_payloads(level) == before
    assert sum(result.usage_before) == sum(result.usage_after)


def test_reindex_is_idempotent():
    _, level = _scenario()
    reindex_resources(level)
    once = (level.bumps.payloads(), _bump_refs(level))
    again = reindex_resources(level)
    assert (level.bumps.payloads(), _bump_refs(level)) == once
    assert not again.changed


def test_reindex_keeps_file_size():
    data, level = _scenario()
    reindex_resources(level)
    assert len(encode_level(level)) == len(data)


def test_dangling_reference_rejected_before_mutation():
    data = level_bytes(flats=[solid_flat(1, 1, 2, [1, 9])], bumps=[A, A])
    level = decode_level(data)
    with pytest.raises(ConsistencyError) as exc:
        reindex_resources(level)
    assert exc.value.code == "E_DANGLING_REF"
    assert encode_level(level) == data


def test_reindex_odd_images_uses_slot_zero():
    cells = [meta_cell(s0=2, s5=1), meta_cell(s0=0, s5=1)]
    data = level_bytes(
        flats=[flat_bytes(width=1, height=2, solid=True, meta=cells)],
        odds=[A, C, A],
    )
    level = decode_level(data)
    assert usage_counts(level.flats, ChunkKind.ODD_IMAGE, 3) == [1, 0, 1]
    result = reindex_resources(level, ChunkKind.ODD_IMAGE)
    assert level.odds.payloads() == [A, ZERO, ZERO]
    assert [c[0] for _, _, c in level.flats[0].meta_cells()] == [0, 0]
    assert result.free_count == 2


def test_odd_reindex_leaves_non_respawn_cells_alone():
    # waypoint unset, then respawn forbidden: byte 0 is not an odd reference
    cells = [meta_cell(s0=1), meta_cell(s0=7, s5=1, s2=5), meta_cell(s0=1, s5=1)]
    data = level_bytes(
        flats=[flat_bytes(width=1, height=3, solid=True, meta=cells)],
        odds=[A, A],
    )
    level = decode_level(data)
    assert usage_counts(level.flats, ChunkKind.ODD_IMAGE, 2) == [0, 1]
    reindex_resources(level, ChunkKind.ODD_IMAGE)
    assert [c[0] for _, _, c in level.flats[0].meta_cells()] == [1, 7, 0]
    assert level.odds.payloads() == [A, ZERO]


def test_camera_byte_ignored_without_camera_positions():
    data = level_bytes(flats=[solid_flat(1, 1, 2, [0, 0])], bumps=[A])
    level = decode_level(data)
    level.flats[0].tex_meta[0][1][3] = 9
    result = reindex_resources(level, ChunkKind.CAMERA_POS)
    assert result.usage_before == []
    assert level.flats[0].tex_meta[0][1][3] == 9
