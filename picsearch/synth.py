"""
Synthetic inputs: random pictures with template objects copied into them
at known positions. Used to try out engines and runs without real data.
"""

import numpy as np

from .inputfile import SearchInput
from .picture import Picture, TemplateObject, Position

DEFAULT_LOW  = 1
DEFAULT_HIGH = 101


def make_search_input(*, num_pictures, picture_size, num_objects, object_size,
                      plants_per_picture=None, threshold=0.1, seed=0):
    """Returns (SearchInput, planted) where planted maps (picture id, object id) -> Position.
    Each picture gets plants_per_picture distinct objects (default: all of them),
    copied in at random positions that do not overlap when there is room."""
    if object_size > picture_size:
        raise ValueError(f"object_size {object_size} is larger than picture_size {picture_size}")
    rng = np.random.default_rng(seed)
    objects = [TemplateObject(100 + i, rng.integers(DEFAULT_LOW, DEFAULT_HIGH, (object_size, object_size)))
               for i in range(num_objects)]
    if plants_per_picture is None:
        plants_per_picture = num_objects
    planted = {}
    pictures = []
    for p in range(num_pictures):
        pixels = rng.integers(DEFAULT_LOW, DEFAULT_HIGH, (picture_size, picture_size))
        chosen = rng.choice(num_objects, size=min(plants_per_picture, num_objects), replace=False)
        used = np.zeros(pixels.shape, dtype=bool)
        for i in chosen:
            obj = objects[int(i)]
            pos = _free_position(rng, used, picture_size, object_size)
            if pos is None:
                continue
            pixels[pos.row:pos.row+object_size, pos.column:pos.column+object_size] = obj.pixels
            used[pos.row:pos.row+object_size, pos.column:pos.column+object_size] = True
            planted[(p, obj.id)] = pos
        pictures.append(Picture(p, pixels))
    return (SearchInput(threshold, pictures, objects), planted)


def _free_position(rng, used, picture_size, object_size, tries=100):
    last = picture_size - object_size
    for _ in range(tries):
        (row, column) = (int(v) for v in rng.integers(0, last + 1, 2))
        if not used[row:row+object_size, column:column+object_size].any():
            return Position(row, column)
    return None
