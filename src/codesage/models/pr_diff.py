"""
PR Diff Data Models

Pull Request 변경 파일 관련 데이터 모델들
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ChangedFile:
    """PR에서 변경된 개별 파일"""
    filename: str
    status: str  # 'added', 'modified', 'removed', 'renamed', ...
    patch: Optional[str] = None

    def __post_init__(self):
        """데이터 검증"""
        if not self.filename:
            raise ValueError("Filename cannot be empty")

    @property
    def has_patch(self) -> bool:
        """패치 내용이 있는지 확인 (바이너리, 단순 rename은 패치가 없음)"""
        return bool(self.patch)

    @classmethod
    def from_api(cls, file_data: Dict[str, Any]) -> "ChangedFile":
        """GitHub API 응답 항목에서 생성"""
        patch = file_data.get('patch')
        return cls(
            filename=file_data['filename'],
            status=file_data.get('status') or 'modified',
            patch=patch if isinstance(patch, str) else None,
        )
