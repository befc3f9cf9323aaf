"""
Community Topology

Structural diagnostics for residential communities: isolation risk, bridge
members, structural holes and outreach priorities from a member roster.
"""

__version__ = "0.1.0"
