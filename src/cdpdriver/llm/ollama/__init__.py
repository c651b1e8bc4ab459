from cdpdriver.llm.ollama.resolver import OllamaLocatorResolver, sanitize_html

__all__ = ['OllamaLocatorResolver', 'sanitize_html']
