# Import all the models, so that Base has them before being
# imported by Alembic
from workforce_sync.db.base_class import Base  # noqa
from workforce_sync.models.employee import Employee  # noqa
