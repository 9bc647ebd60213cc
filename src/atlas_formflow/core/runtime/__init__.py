"""Atlas FormFlow — Runtime (core).

Avaliação em runtime de uma sessão de formulário:
 - valores tipados (sem coerção implícita)
 - Rule Engine e Compute Engine (puros)
 - checagens de valor por campo
 - SessionContext (log estruturado de eventos)
 - Data Engine e ponto de entrada `activate`
"""

from .activation import activate  # noqa: F401
from .compute import ComputeEngine, ComputeResult  # noqa: F401
from .context import SessionContext  # noqa: F401
from .engine import DataEngine  # noqa: F401
from .rules import RuleEngine, RuleEvaluationResult  # noqa: F401
from .types import (  # noqa: F401
    ChangeOrigin,
    ChangeSet,
    DerivedState,
    FieldChange,
    FormValidationResult,
)
from .values import TypedValue, ValueKind, coerce  # noqa: F401
