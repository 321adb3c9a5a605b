from models.forms import FormDefinition, FormSubmission

__all__ = [
    "FormDefinition", "FormSubmission",
]
