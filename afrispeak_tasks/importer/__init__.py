from afrispeak_tasks.importer.bulk import BulkTaskImporter
from afrispeak_tasks.importer.form import BulkTaskForm
from afrispeak_tasks.importer.templates import (
    SAMPLE_TEMPLATES,
    render_template,
    template_filename,
)

__all__ = [
    "BulkTaskForm",
    "BulkTaskImporter",
    "SAMPLE_TEMPLATES",
    "render_template",
    "template_filename",
]
