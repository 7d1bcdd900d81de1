from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shop.data.models.user import UserModel
from shop.domain.errors import Conflict, UserNotFound
from shop.domain.schemas import UserCreate, UserRead
from shop.repos.user_repo import UserRepo
from shop.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        if self.repo.get_user_by_email(payload.email):
            raise Conflict("User already exists")

        try:
            created = self.repo.create_user(UserModel(name=payload.name, email=payload.email))
        except IntegrityError:
            # lost a race on the unique email
            self.db.rollback()
            raise Conflict("User already exists")

        logger.info(f"Created user {created.id}")
        return UserRead.model_validate(created)

    def list_users(self) -> list[UserRead]:
        return [UserRead.model_validate(u) for u in self.repo.list_users()]

    def get_user(self, user_id) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise UserNotFound()
        return UserRead.model_validate(user)
