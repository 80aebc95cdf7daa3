from collections.abc import Generator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from physiobot.database.session import SessionLocal
from physiobot.services.ai_gateway import ConversationGateway, HttpAIGateway


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


DbDep = Annotated[Session, Depends(get_db)]


def get_gateway() -> ConversationGateway:
    return HttpAIGateway()


GatewayDep = Annotated[ConversationGateway, Depends(get_gateway)]
