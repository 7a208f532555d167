"""
Review Data Models

웹훅 처리 결과 관련 데이터 모델들
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class WebhookOutcome:
    """웹훅 처리 결과 (HTTP 응답으로 변환됨)"""
    status: str
    message: Optional[str] = None
    http_status: int = 200
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """데이터 검증"""
        if not self.status:
            raise ValueError("Status cannot be empty")
        if not 100 <= self.http_status <= 599:
            raise ValueError(f"Invalid HTTP status: {self.http_status}")

    @property
    def is_error(self) -> bool:
        return self.http_status >= 400

    def to_dict(self) -> Dict[str, Any]:
        """JSON 응답 본문"""
        body: Dict[str, Any] = {'status': self.status}
        if self.message is not None:
            body['message'] = self.message
        body.update(self.extra)
        return body

    @classmethod
    def received(cls, message: Optional[str] = None, **extra: Any) -> "WebhookOutcome":
        """처리 없이 수신만 확인하는 결과"""
        return cls(status='received', message=message, extra=extra)

    @classmethod
    def error(cls, message: str, http_status: int) -> "WebhookOutcome":
        """오류 결과"""
        return cls(status='error', message=message, http_status=http_status)
