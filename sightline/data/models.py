from dataclasses import dataclass
from typing import Optional


@dataclass
class Interaction:
    id: int
    transcript: str
    command: Optional[str]   # matched command description, None when not understood
    category: Optional[str]
    recognized: bool
    created_at: str
