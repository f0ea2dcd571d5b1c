"""
Schema definitions for the episode stage.
Supports both Gemini and GPT structured output.

Gemini includes propertyOrdering (non-standard),
GPT has strict additionalProperties: false on all nested objects.
"""

GEMINI_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "episodeNumber": {"type": "INTEGER"},
        "title": {"type": "STRING"},
        "synopsis": {"type": "STRING"},
        "scenes": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "sceneNumber": {"type": "INTEGER"},
                    "title": {"type": "STRING"},
                    "content": {"type": "STRING"}
                },
                "required": ["sceneNumber", "title", "content"],
                "propertyOrdering": ["sceneNumber", "title", "content"]
            }
        },
        "branchingOptions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "INTEGER"},
                    "text": {"type": "STRING"},
                    "isCanonical": {"type": "BOOLEAN"}
                },
                "required": ["id", "text", "isCanonical"],
                "propertyOrdering": ["id", "text", "isCanonical"]
            }
        },
        "episodeRundown": {"type": "STRING"}
    },
    "required": ["episodeNumber", "title", "synopsis", "scenes", "branchingOptions"],
    "propertyOrdering": ["episodeNumber", "title", "synopsis", "scenes", "branchingOptions", "episodeRundown"]
}

GPT_SCHEMA = {
    "type": "object",
    "properties": {
        "episodeNumber": {"type": "integer"},
        "title": {"type": "string"},
        "synopsis": {"type": "string"},
        "scenes": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "sceneNumber": {"type": "integer"},
                    "title": {"type": "string"},
                    "content": {"type": "string"}
                },
                "required": ["sceneNumber", "title", "content"],
                "additionalProperties": False
            }
        },
        "branchingOptions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer"},
                    "text": {"type": "string"},
                    "isCanonical": {"type": "boolean"}
                },
                "required": ["id", "text", "isCanonical"],
                "additionalProperties": False
            }
        },
        "episodeRundown": {"type": "string"}
    },
    "required": ["episodeNumber", "title", "synopsis", "scenes", "branchingOptions", "episodeRundown"],
    "additionalProperties": False
}
