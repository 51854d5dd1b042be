"""Operations composed from the query compilers and the hydrator."""

from .create import create, merge, merge_on
from .delete import delete_all, delete_node, delete_relationship, detach_from
from .find import find_all, find_by_id, find_within_distance, first
from .relate import relate_to
from .update import update_node, update_relationship

__all__ = [
    "create",
    "delete_all",
    "delete_node",
    "delete_relationship",
    "detach_from",
    "find_all",
    "find_by_id",
    "find_within_distance",
    "first",
    "merge",
    "merge_on",
    "relate_to",
    "update_node",
    "update_relationship",
]
