"""
PyContentState data model

Records exchanged between the state manager and storage backends. The
user state payload is an opaque string and is never interpreted here.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

TOP_LEVEL_SUB_CONTENT_ID = "0"

_DECIMAL_INTEGER = re.compile(r"^[+-]?[0-9]+$")

# One {dataType: userState} element of the preload sequence
SerializedContentUserData = Dict[str, str]

UserDataKey = Tuple[str, str, str, str]


@dataclass
class User:
    """An already-authenticated principal; only ``id`` is used for scoping."""
    id: str
    name: str = ""
    email: str = ""
    type: str = "local"


@dataclass
class ContentUserData:
    """
    Saved state of one user for one content item.
    
    (content_id, user_id, data_type, sub_content_id) identifies at most
    one stored record.
    """
    content_id: str
    user_id: str
    data_type: str
    sub_content_id: str
    user_state: str
    preload: bool = False
    invalidate: bool = False
    
    @property
    def key(self) -> UserDataKey:
        return (self.content_id, self.user_id, self.data_type, self.sub_content_id)
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            'contentId': self.content_id,
            'userId': self.user_id,
            'dataType': self.data_type,
            'subContentId': self.sub_content_id,
            'userState': self.user_state,
            'preload': self.preload,
            'invalidate': self.invalidate,
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentUserData":
        return cls(
            content_id=data['contentId'],
            user_id=data['userId'],
            data_type=data['dataType'],
            sub_content_id=data.get('subContentId', TOP_LEVEL_SUB_CONTENT_ID),
            user_state=data['userState'],
            preload=bool(data.get('preload', False)),
            invalidate=bool(data.get('invalidate', False)),
        )


@dataclass
class FinishedData:
    """A completion event: score and timing of one user's attempt."""
    content_id: str
    user_id: str
    score: int
    max_score: int
    opened_timestamp: int
    finished_timestamp: int
    completion_time: int
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            'contentId': self.content_id,
            'userId': self.user_id,
            'score': self.score,
            'maxScore': self.max_score,
            'openedTimestamp': self.opened_timestamp,
            'finishedTimestamp': self.finished_timestamp,
            'completionTime': self.completion_time,
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FinishedData":
        return cls(
            content_id=data['contentId'],
            user_id=data['userId'],
            score=data['score'],
            max_score=data['maxScore'],
            opened_timestamp=data['openedTimestamp'],
            finished_timestamp=data['finishedTimestamp'],
            completion_time=data['completionTime'],
        )


def sub_content_sort_key(sub_content_id: Optional[str]) -> Tuple[int, int]:
    """
    Numeric ordering key for a subContentId.
    
    Empty or missing ids are the top-level record and order as 0.
    Ids that are not plain base-10 integers order after every numeric one.
    """
    if sub_content_id is None:
        return (0, 0)
    
    text = str(sub_content_id).strip()
    if not text:
        return (0, 0)
    
    if not _DECIMAL_INTEGER.match(text):
        return (1, 0)
    return (0, int(text))
