"""
Data Models and Analytical Components

Pydantic models for entities and analytical model implementations.
"""

from community_topology.models.entities import (
    CommunityGraph,
    Connection,
    ConnectionType,
    GraphNotSynthesizedError,
    Member,
    TimeBlock,
    UnknownSubgroupError,
)
from community_topology.models.connections import ConnectionSynthesizer
from community_topology.models.homology import BettiNumbers, UnionFind, compute_betti, find_cycles
from community_topology.models.boundary import BoundaryDetector, MemberTopology, TopologySnapshot
from community_topology.models.mayer_vietoris import (
    DecompositionResult,
    HomologyResult,
    MayerVietorisDecomposer,
)
from community_topology.models.persistence import Barcode, PersistenceEngine, PersistenceResult
from community_topology.models.scheduling import SchedulingOptimizer, TimeSlotScore

__all__ = [
    "CommunityGraph",
    "Connection",
    "ConnectionType",
    "GraphNotSynthesizedError",
    "Member",
    "TimeBlock",
    "UnknownSubgroupError",
    "ConnectionSynthesizer",
    "BettiNumbers",
    "UnionFind",
    "compute_betti",
    "find_cycles",
    "BoundaryDetector",
    "MemberTopology",
    "TopologySnapshot",
    "DecompositionResult",
    "HomologyResult",
    "MayerVietorisDecomposer",
    "Barcode",
    "PersistenceEngine",
    "PersistenceResult",
    "SchedulingOptimizer",
    "TimeSlotScore",
]
