from assessment_api.db.base_class import Base
from assessment_api.db.session import engine

# import models so SQLAlchemy registers them
from assessment_api.models import assessment, course, submission, user  # noqa: F401


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
