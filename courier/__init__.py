"""
Courier Bot - Slack Assistant with Tools
========================================

A chat assistant that answers Slack messages (or direct function calls)
with a hosted language model, letting the model call a small set of tools
along the way.

This package provides:
- Agent turn loop over a shared, in-memory conversation history
- Tool registry with typed, validated arguments
- Tools for arithmetic, time, echo, email and LinkedIn posting
- Slack Bolt adapter (Socket Mode or HTTP)
- Document search over local text files
"""

__version__ = "1.0.0"
