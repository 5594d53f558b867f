"""
Truncated eigensolvers: LOBPCG, truncated eigendecomposition and SVD.

Public API:
    lobpcg()              - block eigensolver core, returns Result[LobpcgParams]
    TruncatedEig          - k extreme eigenpairs, or pairs one at a time
    TruncatedEigIterator  - iterator returned by TruncatedEig.iter_pairs()
    TruncatedSVD          - k extreme singular triplets
    EigSolution           - result wrapper for TruncatedEig
    SVDSolution           - result wrapper for TruncatedSVD
"""

from pylinalg.lobpcg._common import ORDERS, LobpcgParams, Order, SVDParams
from pylinalg.lobpcg._lobpcg import lobpcg, sorted_eig
from pylinalg.lobpcg.solvers import TruncatedEig, TruncatedEigIterator, TruncatedSVD
from pylinalg.lobpcg.solution import EigSolution, SVDSolution

__all__ = [
    "Order",
    "ORDERS",
    "lobpcg",
    "sorted_eig",
    "LobpcgParams",
    "SVDParams",
    "TruncatedEig",
    "TruncatedEigIterator",
    "TruncatedSVD",
    "EigSolution",
    "SVDSolution",
]
