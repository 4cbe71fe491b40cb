from alumnihub.assistant.faq import FaqAssistant

__all__ = ["FaqAssistant"]
