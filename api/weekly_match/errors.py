class MatchingError(Exception):
    """Base class for errors raised by the weekly matching service."""


class PromptNotFound(MatchingError):
    def __init__(self, prompt_id: str):
        super().__init__(f"Prompt {prompt_id} not found")
        self.prompt_id = prompt_id


class MatchNotFound(MatchingError):
    def __init__(self, user_id: str, prompt_id: str):
        super().__init__(f"No matches for {user_id} on prompt {prompt_id}")
        self.user_id = user_id
        self.prompt_id = prompt_id


class RevealIndexOutOfRange(MatchingError):
    def __init__(self, index: int, size: int):
        super().__init__(f"Match index {index} out of range for {size} match(es)")
        self.index = index
        self.size = size


class MatchesAlreadyExist(MatchingError):
    def __init__(self, user_id: str, prompt_id: str, existing: list[str]):
        super().__init__(
            f"Matches already exist for {user_id} on prompt {prompt_id}: {', '.join(existing)}. "
            "Use append=true to add more matches."
        )
        self.user_id = user_id
        self.prompt_id = prompt_id
        self.existing = existing


class MatchCapacityExceeded(MatchingError):
    def __init__(self, user_id: str, prompt_id: str, capacity: int):
        super().__init__(f"{user_id} already has {capacity} matches on prompt {prompt_id}")
        self.user_id = user_id
        self.prompt_id = prompt_id
        self.capacity = capacity
