"""Discovery provider interface.

A provider knows how to find operations in one kind of host application and
reports them as RawOperation records; the catalog builder takes the union of
all providers' operations.
"""

from typing import Iterable, Protocol

from api_doc_catalog.models import RawOperation


class MetadataProvider(Protocol):
    def get_operations(self) -> list[RawOperation]:
        ...


class StaticMetadataProvider:
    """Provider over an already extracted list of operations."""

    def __init__(self, operations: Iterable[RawOperation]):
        self.operations = list(operations)

    def get_operations(self) -> list[RawOperation]:
        return list(self.operations)


def collect_operations(providers: Iterable[MetadataProvider]) -> list[RawOperation]:
    """Union of all providers' operations, in provider order."""
    operations: list[RawOperation] = []
    for provider in providers:
        operations.extend(provider.get_operations())
    return operations
