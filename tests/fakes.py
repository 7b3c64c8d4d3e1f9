from ai_client import AIUnavailable


class FakeAI:
    """Stands in for the Gemini client: returns canned replies or raises."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts = []

    def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise AIUnavailable("disabled", "no canned reply")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply
