"""
Webhook Data Models

GitHub 웹훅 요청 및 Pull Request 이벤트 관련 데이터 모델들
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, StrictStr, field_validator


class PullRequestAction(str, Enum):
    """리뷰 대상 여부를 결정하는 PR 액션"""
    OPENED = "opened"
    SYNCHRONIZE = "synchronize"
    OTHER = "other"

    @classmethod
    def from_raw(cls, action: str) -> "PullRequestAction":
        if action == cls.OPENED.value:
            return cls.OPENED
        if action == cls.SYNCHRONIZE.value:
            return cls.SYNCHRONIZE
        return cls.OTHER

    @property
    def triggers_review(self) -> bool:
        return self in (PullRequestAction.OPENED, PullRequestAction.SYNCHRONIZE)


@dataclass(frozen=True)
class WebhookEnvelope:
    """수신된 웹훅 요청 하나"""
    event_type: str
    raw_body: bytes
    signature_header: Optional[str] = None


@dataclass(frozen=True)
class PullRequestContext:
    """리뷰 파이프라인에 필요한 PR 정보"""
    owner: str
    repo: str
    number: int
    title: str
    author_login: str
    action: PullRequestAction
    installation_id: Optional[int] = None

    def __post_init__(self):
        """데이터 검증"""
        for field_name in ('owner', 'repo', 'title', 'author_login'):
            if not getattr(self, field_name):
                raise ValueError(f"{field_name} cannot be empty")
        if self.number <= 0:
            raise ValueError("PR number must be positive")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


# Pydantic models for payload validation
def _integral_number(value: Any) -> Any:
    # JSON numbers may arrive as floats (e.g. 42.0); bools and strings are rejected
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError('must be a number')
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError('must be a whole number')
        return int(value)
    return value


class AccountPayload(BaseModel):
    """user / owner 객체"""
    login: StrictStr

    @field_validator('login')
    @classmethod
    def validate_login(cls, v):
        if not v:
            raise ValueError('login cannot be empty')
        return v


class PullRequestPayload(BaseModel):
    """pull_request 객체"""
    number: int
    title: StrictStr
    user: AccountPayload

    @field_validator('number', mode='before')
    @classmethod
    def validate_number_type(cls, v):
        return _integral_number(v)

    @field_validator('number')
    @classmethod
    def validate_number(cls, v):
        if v <= 0:
            raise ValueError('PR number must be positive')
        return v

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        if not v:
            raise ValueError('title cannot be empty')
        return v


class RepositoryPayload(BaseModel):
    """repository 객체"""
    name: StrictStr
    owner: AccountPayload

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v:
            raise ValueError('repository name cannot be empty')
        return v


class InstallationPayload(BaseModel):
    """installation 객체 (GitHub App으로 전달된 경우)"""
    id: int

    @field_validator('id', mode='before')
    @classmethod
    def validate_id_type(cls, v):
        return _integral_number(v)


class PullRequestEventPayload(BaseModel):
    """pull_request 웹훅 이벤트 본문"""
    action: StrictStr
    pull_request: PullRequestPayload
    repository: RepositoryPayload
    installation: Optional[InstallationPayload] = None

    def to_context(self) -> PullRequestContext:
        return PullRequestContext(
            owner=self.repository.owner.login,
            repo=self.repository.name,
            number=self.pull_request.number,
            title=self.pull_request.title,
            author_login=self.pull_request.user.login,
            action=PullRequestAction.from_raw(self.action),
            installation_id=self.installation.id if self.installation else None,
        )
