from __future__ import annotations

from dataclasses import dataclass, replace
from os import PathLike, fspath


def _as_path(value: str | PathLike[str]) -> str:
    return fspath(value)


@dataclass(frozen=True)
class DockerBuild:
    context: str = "."
    file: str = "Dockerfile"
    tag: str | None = None

    def with_context(self, context: str | PathLike[str]) -> DockerBuild:
        return replace(self, context=_as_path(context))

    def with_file(self, file: str | PathLike[str]) -> DockerBuild:
        return replace(self, file=_as_path(file))

    def with_tag(self, tag: str) -> DockerBuild:
        return replace(self, tag=tag)

    def args(self) -> tuple[str, ...]:
        args = ["build", "-f", self.file]
        if self.tag is not None:
            args.extend(["-t", self.tag])
        args.append(self.context)
        return tuple(args)


@dataclass(frozen=True)
class DockerCreate:
    image: str

    def with_image(self, image: str) -> DockerCreate:
        return replace(self, image=image)

    def args(self) -> tuple[str, ...]:
        return ("create", self.image)


@dataclass(frozen=True)
class DockerCopy:
    """Copy a path out of a container onto the host.

    The source side is addressed as ``container:path``; the destination is a
    plain host path.
    """

    container: str
    source: str
    destination: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "source", _as_path(self.source))
        object.__setattr__(self, "destination", _as_path(self.destination))

    def with_container(self, container: str) -> DockerCopy:
        return replace(self, container=container)

    def with_source(self, source: str | PathLike[str]) -> DockerCopy:
        return replace(self, source=_as_path(source))

    def with_destination(self, destination: str | PathLike[str]) -> DockerCopy:
        return replace(self, destination=_as_path(destination))

    def args(self) -> tuple[str, ...]:
        return ("cp", f"{self.container}:{self.source}", self.destination)
