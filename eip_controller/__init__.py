"""
Elastic IP Controller

Allocates, reuses and releases cluster-owned AWS Elastic IPs, drawing from
a bring-your-own public IPv4 pool when one is configured.
"""

__version__ = "1.0.0"
