"""Document repository - Database operations for account documents"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import UserData
from ...schemas import UserDocument

# UserDocument field -> UserData column
DOCUMENT_COLUMNS = {
    "businessProfile": "business_profile",
    "clients": "clients",
    "appointments": "appointments",
    "expenses": "expenses",
    "ratings": "ratings",
    "bonusEntries": "bonus_entries",
}


class DocumentRepository:
    """Repository for the one-row-per-account document store"""

    @staticmethod
    def get_row(db: Session, email: str) -> Optional[UserData]:
        return db.query(UserData).filter(UserData.email == email).first()

    @staticmethod
    def to_document(row: Optional[UserData]) -> UserDocument:
        """Build a UserDocument from a row; a missing row is an empty document"""
        if row is None:
            return UserDocument()
        return UserDocument.model_validate(
            {field: getattr(row, column) for field, column in DOCUMENT_COLUMNS.items()}
        )

    @staticmethod
    def create_account(db: Session, email: str, password_hash: Optional[str] = None) -> UserData:
        row = UserData(
            email=email,
            password_hash=password_hash,
            business_profile=None,
            clients=[],
            appointments=[],
            expenses=[],
            ratings=[],
            bonus_entries=[],
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    @staticmethod
    def upsert_document(db: Session, email: str, document: UserDocument) -> UserData:
        """Replace every collection of the account's document in one write"""
        data = document.to_json()
        row = db.query(UserData).filter(UserData.email == email).first()
        if row is None:
            row = UserData(email=email)
            db.add(row)
        for field, column in DOCUMENT_COLUMNS.items():
            value = data.get(field)
            if value is None and field != "businessProfile":
                value = []
            setattr(row, column, value)
        db.commit()
        db.refresh(row)
        return row
