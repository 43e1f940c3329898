from .dream import Dream, DreamStatus, Gender, MaritalStatus

__all__ = [
    "Dream",
    "DreamStatus",
    "Gender",
    "MaritalStatus",
]
