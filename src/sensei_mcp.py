""" 20261019 MMH sensei_mcp.py
    A driver program to start the Sensei MCP server from a checkout.

    USAGE: sensei_mcp.py [--prompts-dir DIR] [--resources-dir DIR]
                [--log-level LEVEL] [--transport stdio|http]
                [--host HOST] [--port PORT]
    Same options as the sensei-mcp console script.
"""

import sys

from sensei.mcp_servers.sensei_server import main

if __name__ == "__main__":
    sys.exit(main())
