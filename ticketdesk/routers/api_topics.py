from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..crud.topics import create_topic, delete_topic, list_active_topics, list_topics, update_topic
from ..db.session import get_db
from ..deps.auth import require_account
from ..schemas.topic import TopicCreate, TopicOut, TopicUpdate

router = APIRouter(prefix="/api/v1/topics", tags=["topics"], dependencies=[Depends(require_account)])


@router.get("", response_model=list[TopicOut])
def api_list_topics(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    topics = list_topics(db) if include_inactive else list_active_topics(db)
    return [TopicOut.model_validate(topic) for topic in topics]


@router.post("", response_model=TopicOut, status_code=201)
def api_create_topic(payload: TopicCreate, db: Session = Depends(get_db)):
    return TopicOut.model_validate(create_topic(db, payload.name))


@router.patch("/{topic_id}", response_model=TopicOut)
def api_update_topic(topic_id: int, payload: TopicUpdate, db: Session = Depends(get_db)):
    topic = update_topic(db, topic_id, payload.model_dump(exclude_unset=True))
    return TopicOut.model_validate(topic)


@router.delete("/{topic_id}")
def api_delete_topic(topic_id: int, db: Session = Depends(get_db)):
    delete_topic(db, topic_id)
    return {"status": "deleted"}
