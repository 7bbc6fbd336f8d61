"""Notice service."""

from sqlalchemy.orm import Session

from gclub.core.exceptions import ResourceNotFoundError
from gclub.models.notice import Notice


class NoticeService:
    """Announcements: pinned first, then newest."""

    @staticmethod
    def list_notices(db: Session, page: int = 1, page_size: int = 20):
        query = db.query(Notice).filter(Notice.is_deleted.is_(False))
        total = query.count()
        notices = (
            query.order_by(Notice.is_pinned.desc(), Notice.created_at.desc(), Notice.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {"notices": notices, "total": total, "page": page}

    @staticmethod
    def get_notice(db: Session, notice_id: int) -> Notice:
        notice = (
            db.query(Notice)
            .filter(Notice.id == notice_id, Notice.is_deleted.is_(False))
            .first()
        )
        if not notice:
            raise ResourceNotFoundError("Notice not found")
        return notice

    @staticmethod
    def create_notice(db: Session, author_id: str, title: str, content: str, is_pinned: bool = False) -> Notice:
        notice = Notice(title=title, content=content, author_id=author_id, is_pinned=is_pinned)
        db.add(notice)
        db.commit()
        db.refresh(notice)
        return notice

    @staticmethod
    def delete_notice(db: Session, notice_id: int) -> None:
        notice = NoticeService.get_notice(db, notice_id)
        notice.is_deleted = True
        db.commit()

    @staticmethod
    def increment_view(db: Session, notice_id: int) -> None:
        updated = (
            db.query(Notice)
            .filter(Notice.id == notice_id, Notice.is_deleted.is_(False))
            .update({"view_count": Notice.view_count + 1}, synchronize_session=False)
        )
        if not updated:
            db.rollback()
            raise ResourceNotFoundError("Notice not found")
        db.commit()


notice_service = NoticeService()
