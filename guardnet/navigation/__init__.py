"""
Navigation policy: which main-frame navigations are routed through a scan.
"""

from guardnet.navigation.gate import GateDecision, NavigationGate, mark_verified

__all__ = ["GateDecision", "NavigationGate", "mark_verified"]
