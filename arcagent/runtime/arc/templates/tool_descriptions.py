"""
Tool descriptions for affinity relation model operations.

These descriptions are merged into the tool schemas sent to the inference
backend and into the system directive. Argument shapes themselves come from
the pydantic argument models in ``operations.py``; only human-facing text
lives here.
"""

TOOL_DESCRIPTIONS = {
    "getRenderedArc": {
        "description": "Render the current Affinity Diagram and send it to user.",
        "parameters": {},
    },
    "getArcModel": {
        "description": "Return the full Affinity Diagram model (reasonTable and relations).",
        "parameters": {},
    },
    "setTitleAndSubtitle": {
        "description": "Set the title and subtitle to the Affinity Diagram.",
        "parameters": {
            "title": "Short diagram title naming the system or area being analysed.",
            "subtitle": "One line of context, for example the scope or the date.",
        },
    },
    "addReasonItem": {
        "description": (
            "Add a new reason to reasonTable. The reason receives the next free "
            "numeric code, returned in the result."
        ),
        "parameters": {
            "reasonDescription": "Justification text. Must differ from every existing reason.",
        },
    },
    "deleteReasonItem": {
        "description": (
            "Delete a reason and shift remaining reason codes down. The code is "
            "also removed from every relation that used it."
        ),
        "parameters": {
            "reasonCode": "Existing reason code, for example \"2\".",
        },
    },
    "addItem": {
        "description": (
            "Add a new item to the relations matrix. Relations between the new "
            "item and every existing item are created unset."
        ),
        "parameters": {
            "itemName": "Unique, case-sensitive item name.",
        },
    },
    "deleteItem": {
        "description": "Delete an item from relations matrix, together with all of its relations.",
        "parameters": {
            "itemName": "Name of an existing item.",
        },
    },
    "setItemRelation": {
        "description": (
            "Set a score between two items. The score applies to both directions "
            "of the relation."
        ),
        "parameters": {
            "item1": "First item of the pair.",
            "item2": "Second item of the pair.",
            "score": "Score symbol from the score table (A, E, I, O, U, X).",
        },
    },
    "setItemReason": {
        "description": "Add a reason to a relation. Set the relation score first.",
        "parameters": {
            "item1": "First item of the pair.",
            "item2": "Second item of the pair.",
            "reason": "Existing reason code not yet assigned to this relation.",
        },
    },
    "unsetItemReason": {
        "description": "Remove a reason from a relation.",
        "parameters": {
            "item1": "First item of the pair.",
            "item2": "Second item of the pair.",
            "reason": "Reason code currently assigned to this relation.",
        },
    },
}


# Concise single-line descriptions for compact tool lists
TOOL_DESCRIPTIONS_COMPACT = {
    "setTitleAndSubtitle": "set the title and subtitle of the diagram",
    "addReasonItem": "add reasons",
    "addItem": "add items",
    "deleteItem": "delete items",
    "deleteReasonItem": "delete reasons",
    "setItemRelation": "set scores",
    "setItemReason": "set reasons",
    "unsetItemReason": "remove reasons from a relation",
    "getArcModel": "inspect the current model",
    "getRenderedArc": "render the diagram",
}


# Rules of interaction appended to the system directive
OPERATION_GUIDELINES = """
Rules of Interaction:
- You MUST use tools to update the Affinity Diagram.
- Do NOT write or modify arc data in normal messages.
- If you need the current structure, call getArcModel.
- If you detect missing data, confusion, or uncertainty, immediately call getArcModel or getRenderedArc.
- A failed tool result explains what was wrong; fix the arguments and call the tool again.
"""
