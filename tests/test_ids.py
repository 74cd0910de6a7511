from sketchcore.ids import IdAllocator
from sketchcore.sketch import SketchModel


def test_counters_are_independent():
    alloc = IdAllocator()
    assert alloc.allocate_point_id() == 0
    assert alloc.allocate_point_id() == 1
    assert alloc.allocate_entity_id() == 0
    assert alloc.allocate_constraint_id() == 0
    assert alloc.state() == {"sketch": 0, "point": 2, "entity": 1, "constraint": 1}


def test_reset_and_copy():
    alloc = IdAllocator()
    alloc.allocate_point_id()
    other = alloc.copy()
    other.allocate_point_id()
    assert alloc.next_point == 1
    assert other.next_point == 2
    alloc.reset()
    assert alloc.state() == {"sketch": 0, "point": 0, "entity": 0, "constraint": 0}


def test_sketches_do_not_share_ids():
    first = SketchModel()
    second = SketchModel()
    assert first.add_point(0.0, 0.0) == 0
    assert second.add_point(1.0, 1.0) == 0


def test_shared_allocator_numbers_sketches():
    alloc = IdAllocator()
    a = SketchModel(allocator=alloc)
    b = SketchModel(allocator=alloc)
    assert (a.id, b.id) == (0, 1)
    assert a.name == "Sketch0"
    assert b.name == "Sketch1"
