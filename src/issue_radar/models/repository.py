from dataclasses import dataclass


class InvalidRepositoryError(ValueError):
    """Raised when a repository identifier is not of the form owner/name."""

    def __init__(self, repo: object):
        self.repo = repo
        super().__init__(
            f'Invalid repo format {repo!r}. Expected "owner/repository-name"'
        )


@dataclass(frozen=True)
class RepoRef:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


def parse_repo_string(repo: str) -> RepoRef:
    """Split an "owner/name" string, rejecting anything but two non-empty segments."""
    if not isinstance(repo, str):
        raise InvalidRepositoryError(repo)
    parts = repo.split('/')
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        raise InvalidRepositoryError(repo)
    return RepoRef(owner=parts[0].strip(), name=parts[1].strip())
