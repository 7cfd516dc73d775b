"""
TeamCity locator builder.

A locator is TeamCity's filter mini-language used in REST paths and query
strings: ``name:value`` clauses joined by commas, where a value may itself be
a parenthesized locator. Locators here are immutable; serialization is
``str(locator)``.
"""

from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Tuple, Union

DEFAULT_COUNT = 5


def _bool(value: bool) -> str:
    return "true" if value else "false"


@dataclass(frozen=True)
class BuildTypeLocator:
    """Locator selecting build configurations."""

    id: Optional[str] = None
    type: Optional[str] = None
    name: Optional[str] = None
    items: Tuple["BuildTypeLocator", ...] = ()

    @classmethod
    def only_builds(cls) -> "BuildTypeLocator":
        """Regular build configurations named ``Build``."""
        return cls(type="regular", name="Build")

    @classmethod
    def only_deploys(cls) -> "BuildTypeLocator":
        """Deployment build configurations."""
        return cls(type="deployment")

    @classmethod
    def from_ids(cls, ids: Iterable[str]) -> "BuildTypeLocator":
        """Any of the given build type ids, in the given order."""
        return cls(items=tuple(cls(id=build_type_id) for build_type_id in ids))

    def __str__(self) -> str:
        clauses: List[str] = []

        if self.id is not None:
            clauses.append(f"id:{self.id}")
        if self.type is not None:
            clauses.append(f"type:{self.type}")
        if self.name is not None:
            clauses.append(f"name:{self.name}")
        for item in self.items:
            clauses.append(f"item:({item})")

        return ",".join(clauses)


@dataclass(frozen=True)
class BuildLocator:
    """
    Locator selecting builds.

    Clauses are emitted in a fixed order: defaultFilter, personal, id, user,
    buildType, count, branch. Unset fields are omitted. ``branch="any"``
    means "any branch under the default branch filter" and is emitted as
    ``branch:default:any``.
    """

    id: Optional[int] = None
    user: Optional[str] = None
    build_type: Optional[Union[str, BuildTypeLocator]] = None
    count: Optional[int] = None
    branch: Optional[str] = None
    personal: Optional[bool] = None
    default_filter: Optional[bool] = None

    @classmethod
    def builder(cls) -> "BuildLocatorBuilder":
        return BuildLocatorBuilder()

    def __str__(self) -> str:
        clauses: List[str] = []

        if self.default_filter is not None:
            clauses.append(f"defaultFilter:{_bool(self.default_filter)}")
        if self.personal is not None:
            clauses.append(f"personal:{_bool(self.personal)}")
        if self.id is not None:
            clauses.append(f"id:{self.id}")
        if self.user is not None:
            clauses.append(f"user:{self.user}")
        if isinstance(self.build_type, BuildTypeLocator):
            clauses.append(f"buildType:({self.build_type})")
        elif self.build_type is not None:
            clauses.append(f"buildType:{self.build_type}")
        if self.count is not None:
            clauses.append(f"count:{self.count}")
        if self.branch == "any":
            clauses.append("branch:default:any")
        elif self.branch is not None:
            clauses.append(f"branch:{self.branch}")

        return ",".join(clauses)


@dataclass
class BuildLocatorBuilder:
    """
    Fluent builder for :class:`BuildLocator`.

    Every setter accepts ``None`` (leaving the clause unset) so call sites can
    forward optional CLI arguments directly. ``build()`` fills ``count`` with
    :data:`DEFAULT_COUNT` when it was not set.
    """

    _locator: BuildLocator = field(default_factory=BuildLocator)

    def id(self, value: Optional[int]) -> "BuildLocatorBuilder":
        self._locator = replace(self._locator, id=value)
        return self

    def user(self, value: Optional[str]) -> "BuildLocatorBuilder":
        self._locator = replace(self._locator, user=value)
        return self

    def build_type(self, value: Optional[Union[str, BuildTypeLocator]]) -> "BuildLocatorBuilder":
        self._locator = replace(self._locator, build_type=value)
        return self

    def count(self, value: Optional[int]) -> "BuildLocatorBuilder":
        self._locator = replace(self._locator, count=value)
        return self

    def branch(self, value: Optional[str]) -> "BuildLocatorBuilder":
        self._locator = replace(self._locator, branch=value)
        return self

    def personal(self, value: Optional[bool]) -> "BuildLocatorBuilder":
        self._locator = replace(self._locator, personal=value)
        return self

    def default_filter(self, value: Optional[bool]) -> "BuildLocatorBuilder":
        self._locator = replace(self._locator, default_filter=value)
        return self

    def build(self) -> BuildLocator:
        if self._locator.count is None:
            return replace(self._locator, count=DEFAULT_COUNT)
        return self._locator


def split_locator(text: str) -> List[str]:
    """
    Split a serialized locator into its top-level clauses.

    Commas nested inside parentheses do not split:
    ``"count:5,buildType:(item:(id:A),item:(id:B))"`` yields two clauses.
    """
    clauses: List[str] = []
    depth = 0
    start = 0

    for index, char in enumerate(text):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "," and depth == 0:
            clauses.append(text[start:index])
            start = index + 1

    if text:
        clauses.append(text[start:])
    return clauses


def clause_keys(text: str) -> List[str]:
    """Names of the top-level clauses of a serialized locator."""
    return [clause.split(":", 1)[0] for clause in split_locator(text)]
