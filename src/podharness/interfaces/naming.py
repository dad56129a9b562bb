"""Interface for generating unique resource names."""

import abc

# pylint: disable=too-few-public-methods


class NameGenerator(abc.ABC):
    """Contract for a generator of globally unique network names."""

    @abc.abstractmethod
    def new_name(self) -> str:
        """Return a name that has never been handed out before."""
