"""Core swap execution: chains, recovery, swap flows."""
