from sqlalchemy.orm import Session

from telecare.models.user import User
from telecare.utils.errors import UserNotFoundError

EDITABLE_FIELDS = [
    "name",
    "phone",
    "address",
    "profile_picture_url",
    "date_of_birth",
    "gender",
]


class UserService:
    @staticmethod
    def get_by_id(db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == int(user_id)).first()
        if not user:
            raise UserNotFoundError()
        return user

    @staticmethod
    def update_profile(db: Session, user_id: int, payload: dict) -> User:
        user = UserService.get_by_id(db, user_id)
        for field in EDITABLE_FIELDS:
            if field in payload and payload[field] is not None:
                setattr(user, field, payload[field])
        db.commit()
        db.refresh(user)
        return user
