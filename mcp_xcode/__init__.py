"""mcp-xcode - Apple platform build, test and simulator tools over MCP"""

__version__ = "0.3.0"
