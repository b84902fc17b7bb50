"""Safe Fetch MCP Server.

Fetches URLs, reads files and runs commands, then strips prompt-injection
vectors (hidden HTML, invisible unicode, encoded payloads, exfiltration
images, fake chat delimiters) before the content reaches an agent.
"""

__version__ = "0.2.0"
