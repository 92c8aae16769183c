"""
Ratreals Core
"""

# ruff: noqa: F401
# pyright: reportUnusedImport=false

from ratreals.core.answers import (
    Answer,
    AnswerKind,
    Maybe,
    No,
    Yes,
    answer_kind,
)
from ratreals.core.diagnostics import (
    Diagnostics,
    ExportableLogMessage,
    LogLevel,
    LogMessage,
    current_diagnostics,
    diagnostics,
    log,
    log_warning,
    set_diagnostics,
)
from ratreals.core.errors import (
    DivisionByZeroError,
    InvalidIntervalError,
    KantorovichConditionError,
    OracleConsistencyError,
    OracleError,
    PrecisionLimitationError,
)
from ratreals.core.intervals import (
    ONE,
    ZERO,
    Rational,
    RationalInterval,
    RationalLike,
    halo,
    interval,
    rational,
)
from ratreals.core.narrowing import (
    Cutter,
    RefinedOracle,
    narrow,
    narrow_with_cutter,
    refine,
    refine_with_cutter,
)
from ratreals.core.oracles import (
    Algorithm,
    AlgorithmOracle,
    Narrowing,
    Oracle,
    Predicate,
    RefinementQueue,
    TestOracle,
    make_algorithm_oracle,
    make_test_oracle,
    tolerance,
)
from ratreals.core.settings import (
    SETTINGS_FILE,
    RefinementSettings,
    current_settings,
    find_settings_file,
    load_settings,
    use_settings,
)
