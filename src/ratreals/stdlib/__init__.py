"""
Ratreals standard library: rational oracles, arithmetic, root finders
and axiom validators.
"""

# ruff: noqa: F401
# pyright: reportUnusedImport=false

from ratreals.stdlib.arithmetic import (
    add,
    divide,
    multiply,
    negate,
    subtract,
)
from ratreals.stdlib.asking import (
    HistoryEntry,
    ask,
)
from ratreals.stdlib.properties import (
    check_closed,
    check_consistency,
    check_disjointness,
    check_existence,
    check_range,
    check_reasonableness,
    check_separation,
)
from ratreals.stdlib.rationals import (
    BisectionOracle,
    FuzzyReflexiveOracle,
    HaloOracle,
    RandomOracle,
    RandomTolerance,
    ReflexiveOracle,
    SingularOracle,
    bisection_oracle,
    from_interval,
    from_rational,
    from_test_function,
    fuzzy_reflexive_oracle,
    halo_oracle,
    random_oracle,
    reflexive_oracle,
    singular_oracle,
)
from ratreals.stdlib.roots import (
    KantorovichState,
    NewtonRootState,
    NRootTestOracle,
    RealFunction,
    ivt_root,
    kantorovich_root,
    n_root,
    n_root_test,
)
