"""
NDList: an ordered list of NDArrays.
"""

from typing import List


class NDList(list):
    """
    List of NDArrays, used as the input and output of multi-array operations.

    Closing the list closes every array in it.
    """

    def head(self):
        """First array in the list."""
        if not self:
            raise IndexError("NDList is empty")
        return self[0]

    def singleton_or_throw(self):
        """The only array in the list."""
        if len(self) != 1:
            raise ValueError(
                f"Incorrect number of elements in NDList.singleton_or_throw: Expected 1 and was {len(self)}"
            )
        return self[0]

    def get_shapes(self) -> List:
        return [array.shape for array in self]

    def to_device(self, device, copy: bool = False) -> 'NDList':
        return NDList(array.to_device(device, copy=copy) for array in self)

    def attach(self, manager):
        """Move every array to another manager."""
        for array in self:
            array.attach(manager)

    def close(self):
        for array in self:
            array.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __repr__(self):
        lines = [f"NDList size: {len(self)}"]
        for i, array in enumerate(self):
            if array.is_released():
                lines.append(f"{i} : (released)")
            else:
                lines.append(f"{i} : {array.shape} {array.data_type}")
        return "\n".join(lines)
