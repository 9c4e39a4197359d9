"""EIP Agent — streaming chat endpoint for Ethereum Improvement Proposal questions."""

__version__ = "1.0.0"
