"""Optional-field views over Tugboat API payloads.

The API owns these entities; the classes only give the formatters typed,
``None``-for-missing access to the JSON the API returns. Unknown keys are
ignored and every field may be absent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _get(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key, trying camelCase and snake_case spellings."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _str(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, str) else str(item) for item in value]


def _mapping(payload: Any) -> dict[str, Any]:
    return payload if isinstance(payload, dict) else {}


@dataclass(frozen=True)
class Project:
    """Tugboat project."""

    id: str | None = None
    name: str | None = None
    description: str | None = None
    domain: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    size: int | float | None = None
    quota: int | float | None = None
    memory: int | None = None
    build_memory: int | None = None
    cpus: int | float | None = None
    sleep: int | None = None
    base: bool | None = None
    repo_count: int = 0
    admins: list[str] = field(default_factory=list)
    users: list[str] = field(default_factory=list)
    guests: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Any) -> Project:
        data = _mapping(payload)
        repos = data.get("repos")
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name")),
            description=_str(data.get("description")),
            domain=_str(data.get("domain")),
            created_at=_str(_get(data, "createdAt", "created_at", "created")),
            updated_at=_str(_get(data, "updatedAt", "updated_at", "updated")),
            size=data.get("size"),
            quota=data.get("quota"),
            memory=data.get("memory"),
            build_memory=data.get("build_memory"),
            cpus=data.get("cpus"),
            sleep=data.get("sleep"),
            base=data.get("base"),
            repo_count=len(repos) if isinstance(repos, list) else 0,
            admins=_str_list(data.get("admins")),
            users=_str_list(data.get("users")),
            guests=_str_list(data.get("guests")),
        )


@dataclass(frozen=True)
class Repository:
    """Tugboat repository and its build settings."""

    id: str | None = None
    name: str | None = None
    provider: str | None = None
    project: str | None = None
    project_name: str | None = None
    git: str | None = None
    link: str | None = None
    url: str | None = None
    webhook: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    size: int | float | None = None
    preview_count: int = 0
    domain: str | None = None
    private: bool | None = None
    autobuild: bool = False
    autobuild_drafts: bool = False
    autodelete: bool = False
    autorebuild: bool = False
    autoredeploy: bool = False
    envvars: list[str] = field(default_factory=list)
    deploy_public: str | None = None
    ssh_public: str | None = None

    @classmethod
    def from_dict(cls, payload: Any) -> Repository:
        data = _mapping(payload)
        provider = data.get("provider")
        if isinstance(provider, dict):
            provider = provider.get("name")
        project = data.get("project")
        project_name = None
        if isinstance(project, dict):
            project_name = _str(project.get("name"))
            project = project.get("id")
        previews = data.get("previews")
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name")),
            provider=_str(provider),
            project=_str(project),
            project_name=project_name,
            git=_str(data.get("git")),
            link=_str(data.get("link")),
            url=_str(data.get("url")),
            webhook=_str(data.get("webhook")),
            created_at=_str(_get(data, "createdAt", "created_at", "created")),
            updated_at=_str(_get(data, "updatedAt", "updated_at", "updated")),
            size=data.get("size"),
            preview_count=len(previews) if isinstance(previews, list) else 0,
            domain=_str(data.get("domain")),
            private=data.get("private"),
            autobuild=bool(data.get("autobuild")),
            autobuild_drafts=bool(data.get("autobuild_drafts")),
            autodelete=bool(data.get("autodelete")),
            autorebuild=bool(data.get("autorebuild")),
            autoredeploy=bool(data.get("autoredeploy")),
            envvars=_str_list(data.get("envvars")),
            deploy_public=_str(data.get("deploy_public")),
            ssh_public=_str(data.get("ssh_public")),
        )


@dataclass(frozen=True)
class Preview:
    """Tugboat preview environment."""

    id: str | None = None
    name: str | None = None
    state: str | None = None
    ref: str | None = None
    url: str | None = None
    created_at: str | None = None
    size: Any = None
    locked: bool | None = None
    anchor: bool | None = None
    anchor_type: str | None = None
    expires: str | None = None
    build_begin: str | None = None
    build_end: str | None = None
    repository: str | None = None

    @classmethod
    def from_dict(cls, payload: Any) -> Preview:
        data = _mapping(payload)
        repository = data.get("repository", data.get("repo"))
        if isinstance(repository, dict):
            repository = repository.get("name") or repository.get("id")
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name")),
            state=_str(_get(data, "state", "status")),
            ref=_str(data.get("ref")),
            url=_str(data.get("url")),
            created_at=_str(_get(data, "createdAt", "created_at", "created")),
            size=data.get("size"),
            locked=data.get("locked"),
            anchor=data.get("anchor"),
            anchor_type=_str(data.get("anchor_type")),
            expires=_str(data.get("expires")),
            build_begin=_str(data.get("build_begin")),
            build_end=_str(data.get("build_end")),
            repository=_str(repository),
        )


@dataclass(frozen=True)
class Job:
    """Asynchronous upstream operation (build, refresh, clone, ...)."""

    id: str | None = None
    action: str | None = None
    target: str | None = None
    result: str | None = None
    message: str | None = None
    status: str | None = None
    type: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    started_at: str | None = None
    ended_at: str | None = None

    @classmethod
    def from_dict(cls, payload: Any) -> Job:
        data = _mapping(payload)
        return cls(
            id=_str(data.get("id")),
            action=_str(data.get("action")),
            target=_str(data.get("target")),
            result=_str(data.get("result")),
            message=_str(data.get("message")),
            status=_str(data.get("status")),
            type=_str(data.get("type")),
            created_at=_str(_get(data, "createdAt", "created_at", "created")),
            updated_at=_str(_get(data, "updatedAt", "updated_at", "updated")),
            started_at=_str(_get(data, "startedAt", "started_at")),
            ended_at=_str(_get(data, "endedAt", "ended_at")),
        )


@dataclass(frozen=True)
class Statistic:
    """One statistics data point."""

    timestamp: str | None = None
    value: Any = None
    preview: str | None = None
    repo: str | None = None
    service: str | None = None

    @classmethod
    def from_dict(cls, payload: Any) -> Statistic:
        data = _mapping(payload)
        return cls(
            timestamp=_str(_get(data, "timestamp", "date")),
            value=data.get("value"),
            preview=_str(data.get("preview")),
            repo=_str(data.get("repo")),
            service=_str(data.get("service")),
        )


@dataclass(frozen=True)
class LogEntry:
    timestamp: str | None = None
    message: str = ""

    @classmethod
    def from_dict(cls, payload: Any) -> LogEntry:
        if isinstance(payload, str):
            return cls(message=payload)
        data = _mapping(payload)
        return cls(
            timestamp=_str(_get(data, "timestamp", "time", "createdAt")),
            message=_str(_get(data, "message", "text")) or "",
        )


@dataclass(frozen=True)
class GitRef:
    """Branch or tag."""

    name: str | None = None
    ref: str | None = None
    url: str | None = None

    @classmethod
    def from_dict(cls, payload: Any) -> GitRef:
        data = _mapping(payload)
        return cls(
            name=_str(data.get("name")),
            ref=_str(data.get("ref")),
            url=_str(data.get("url")),
        )


@dataclass(frozen=True)
class PullRequest:
    number: int | str | None = None
    name: str | None = None
    created: str | None = None
    updated: str | None = None
    url: str | None = None

    @classmethod
    def from_dict(cls, payload: Any) -> PullRequest:
        data = _mapping(payload)
        return cls(
            number=data.get("number"),
            name=_str(_get(data, "name", "title")),
            created=_str(_get(data, "created", "createdAt")),
            updated=_str(_get(data, "updated", "updatedAt")),
            url=_str(data.get("url")),
        )


@dataclass(frozen=True)
class Registry:
    """Docker registry credentials attached to a repository."""

    id: str | None = None
    server: str | None = None
    username: str | None = None
    email: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_dict(cls, payload: Any) -> Registry:
        data = _mapping(payload)
        return cls(
            id=_str(data.get("id")),
            server=_str(data.get("serveraddress")),
            username=_str(data.get("username")),
            email=_str(data.get("email")),
            created_at=_str(_get(data, "createdAt", "created_at")),
            updated_at=_str(_get(data, "updatedAt", "updated_at")),
        )


__all__ = [
    "GitRef",
    "Job",
    "LogEntry",
    "Preview",
    "Project",
    "PullRequest",
    "Registry",
    "Repository",
    "Statistic",
]
