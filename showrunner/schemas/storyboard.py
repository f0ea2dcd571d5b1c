"""
Schema definitions for the storyboard stage.
Supports both Gemini and GPT structured output.
"""

_GEMINI_SHOT = {
    "type": "OBJECT",
    "properties": {
        "shotNumber": {"type": "INTEGER"},
        "shotType": {"type": "STRING"},
        "cameraAngle": {"type": "STRING"},
        "cameraMovement": {"type": "STRING"},
        "description": {"type": "STRING"},
        "characters": {"type": "ARRAY", "items": {"type": "STRING"}},
        "propsInFrame": {"type": "ARRAY", "items": {"type": "STRING"}},
        "duration": {"type": "STRING"}
    },
    "required": ["shotNumber", "shotType", "description"]
}

GEMINI_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "episodeNumber": {"type": "INTEGER"},
        "scenes": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "sceneNumber": {"type": "INTEGER"},
                    "location": {"type": "STRING"},
                    "shots": {"type": "ARRAY", "items": _GEMINI_SHOT}
                },
                "required": ["sceneNumber", "shots"]
            }
        }
    },
    "required": ["episodeNumber", "scenes"]
}

_GPT_SHOT = {
    "type": "object",
    "properties": {
        "shotNumber": {"type": "integer"},
        "shotType": {"type": "string"},
        "cameraAngle": {"type": "string"},
        "cameraMovement": {"type": "string"},
        "description": {"type": "string"},
        "characters": {"type": "array", "items": {"type": "string"}},
        "propsInFrame": {"type": "array", "items": {"type": "string"}},
        "duration": {"type": "string"}
    },
    "required": ["shotNumber", "shotType", "cameraAngle", "cameraMovement", "description",
                 "characters", "propsInFrame", "duration"],
    "additionalProperties": False
}

GPT_SCHEMA = {
    "type": "object",
    "properties": {
        "episodeNumber": {"type": "integer"},
        "scenes": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "sceneNumber": {"type": "integer"},
                    "location": {"type": "string"},
                    "shots": {"type": "array", "items": _GPT_SHOT}
                },
                "required": ["sceneNumber", "location", "shots"],
                "additionalProperties": False
            }
        }
    },
    "required": ["episodeNumber", "scenes"],
    "additionalProperties": False
}
