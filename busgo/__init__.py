def init_db():
    from busgo.db import engine
    from busgo.models import Base

    Base.metadata.create_all(bind=engine)
