"""Fixed names the checker keys on."""

MODEL_MARKER = "SerializationModel"

REGISTRY_BASE_TYPE = "System.Text.Json.Serialization.JsonSerializerContext"
REGISTRATION_ATTRIBUTE = "System.Text.Json.Serialization.JsonSerializableAttribute"

REGISTRY_NAME_SUFFIX = "SourceGenerationContext"

# Tried in order; the first one that resolves wins.
REGISTRY_LOOKUP_PATTERNS: tuple[str, ...] = (
    "{assembly}.Converters.{name}",
    "{assembly}.{name}",
)

MODEL_DECLARATION_KINDS: frozenset[str] = frozenset({"record"})
