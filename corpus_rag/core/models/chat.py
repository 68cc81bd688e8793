"""Chat domain models."""
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ConversationTurn:
    """One question/answer exchange."""
    question: str
    answer: str


@dataclass
class ChatHistory:
    """Recent turns of a session, oldest first."""
    turns: list[ConversationTurn] = field(default_factory=list)
    max_turns: int = 3

    def __post_init__(self) -> None:
        if len(self.turns) > self.max_turns:
            self.turns = self.turns[-self.max_turns:]

    def add(self, turn: ConversationTurn) -> None:
        """Add turn to history."""
        self.turns.append(turn)
        if len(self.turns) > self.max_turns:
            self.turns = self.turns[-self.max_turns:]

    def add_pair(self, question: str, answer: str) -> None:
        self.add(ConversationTurn(question=question, answer=answer))

    @property
    def has_history(self) -> bool:
        return bool(self.turns)

    @property
    def last_answer(self) -> str:
        return self.turns[-1].answer if self.turns else ""

    @property
    def last_answer_length(self) -> int:
        return len(self.last_answer)

    @property
    def questions(self) -> list[str]:
        return [t.question for t in self.turns]

    def to_list(self) -> list[dict]:
        """Convert to list of role/content dicts for LLM."""
        messages = []
        for turn in self.turns:
            messages.append({"role": "user", "content": turn.question})
            messages.append({"role": "assistant", "content": turn.answer})
        return messages
