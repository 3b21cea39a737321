from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import declarative_base

# Define a common Base for all models
Base = declarative_base(cls=AsyncAttrs)

# Import models AFTER Base is defined so they register on the same metadata
from . import user
