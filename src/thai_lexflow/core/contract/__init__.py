"""thai_lexflow — Contract (core).

Componentes canônicos do contrato do contexto do pipeline:
 - tipos de campo e schemas fechados (validação estrutural pura)
 - schema do PipelineContext e do Sense
 - construtores selados (SeededInput / ProcessedContext)
"""

from .errors import (  # noqa: F401
    ContractViolation,
    ContextValidationError,
    CorruptContext,
    InvalidStepOutput,
    StepContractError,
)
from .schema import ContractIssue, FieldSpec, ObjectSchema, ValidationResult, is_blank  # noqa: F401
from .context import CONTEXT_FIELDS, PIPELINE_CONTEXT_SCHEMA, parse_context, validate_context  # noqa: F401
from .sense import SENSE_SCHEMA, detect_sense_version, is_complete_sense, validate_sense  # noqa: F401
from .sealed import ProcessedContext, SeededInput, make_processed_context, make_seeded_input  # noqa: F401
