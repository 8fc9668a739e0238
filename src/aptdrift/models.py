"""Records decoded from APT repository metadata stanzas."""

from typing import Annotated, ClassVar

from pydantic import BaseModel, Field

type OptionalStr = str | None
type OptionalStrList = list[str] | None


class ControlRecord(BaseModel):
    """Base for records mapped from a single stanza.

    ``stanza_keys`` maps stanza keys to model attributes; ``list_attrs`` names the attributes
    holding whitespace-separated token lists.
    """

    stanza_keys: ClassVar[dict[str, str]] = {}
    list_attrs: ClassVar[frozenset[str]] = frozenset()


class Release(ControlRecord):
    """The interesting bits of a ``dists/<suite>/Release`` manifest."""

    stanza_keys: ClassVar[dict[str, str]] = {
        "Architectures": "architectures",
        "Codename": "codename",
        "Components": "components",
    }
    list_attrs: ClassVar[frozenset[str]] = frozenset({"architectures", "components"})

    architectures: OptionalStrList = None
    codename: OptionalStr = None
    components: OptionalStrList = None


class Package(ControlRecord):
    """A binary package entry from a Packages listing."""

    stanza_keys: ClassVar[dict[str, str]] = {
        "Package": "package",
        "Architectures": "architectures",
        "Version": "version",
        "Source": "source",
    }
    list_attrs: ClassVar[frozenset[str]] = frozenset({"architectures"})

    package: OptionalStr = None
    architectures: OptionalStrList = None
    version: OptionalStr = None
    source: OptionalStr = None


class Source(ControlRecord):
    """A source package entry from a Sources listing."""

    stanza_keys: ClassVar[dict[str, str]] = {
        "Package": "package",
        "Architectures": "architectures",
        "Version": "version",
        "Directory": "directory",
    }
    list_attrs: ClassVar[frozenset[str]] = frozenset({"architectures"})

    package: OptionalStr = None
    architectures: OptionalStrList = None
    version: OptionalStr = None
    directory: Annotated[OptionalStr, Field(description="pool path of the source files")] = None
