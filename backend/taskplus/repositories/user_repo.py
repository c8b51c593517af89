"""User Repository - Users, employees, departments and sections"""
from typing import Any, Dict, List, Optional
from pymongo import ASCENDING
from pymongo.collection import Collection

from .mongo_client import get_collection
from ..domain.models import User, Employee, Department, Section
from ..domain.enums import UserStatus
from ..domain.errors import UserNotFoundError
from ..utils.logger import get_logger
from ..utils.time import storage_now

logger = get_logger(__name__)


class UserRepository:
    """Repository for users and organization reference data"""

    def __init__(self):
        self._users: Collection = get_collection("users")
        self._employees: Collection = get_collection("employees")
        self._departments: Collection = get_collection("departments")
        self._sections: Collection = get_collection("sections")

    # =========================================================================
    # Users
    # =========================================================================

    def create_user(self, user: User) -> User:
        doc = user.model_dump()
        self._users.insert_one(doc)
        logger.info(f"Created user: {user.username}", extra={"user_id": user.user_id})
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        doc = self._users.find_one({"user_id": user_id})
        if doc:
            doc.pop("_id", None)
            return User.model_validate(doc)
        return None

    def get_user_or_raise(self, user_id: str) -> User:
        user = self.get_user(user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    def get_user_by_identifier(self, identifier: str) -> Optional[User]:
        """Look up a user by username or (case-insensitive) email"""
        identifier = (identifier or "").strip()
        if not identifier:
            return None
        doc = self._users.find_one({
            "$or": [
                {"username": identifier},
                {"email": identifier.lower()},
            ]
        })
        if doc:
            doc.pop("_id", None)
            return User.model_validate(doc)
        return None

    def get_active_user(self, user_id: str) -> Optional[User]:
        doc = self._users.find_one({"user_id": user_id, "status": UserStatus.ACTIVE.value})
        if doc:
            doc.pop("_id", None)
            return User.model_validate(doc)
        return None

    def record_login(self, user_id: str) -> None:
        now = storage_now()
        self._users.update_one(
            {"user_id": user_id},
            {"$set": {"last_login": now, "updated_at": now}}
        )

    def list_users_for_employee(self, employee_id: int) -> List[User]:
        """Active users linked to an employee (notification recipients)"""
        cursor = self._users.find({
            "employee_id": employee_id,
            "status": UserStatus.ACTIVE.value
        })
        users = []
        for doc in cursor:
            doc.pop("_id", None)
            users.append(User.model_validate(doc))
        return users

    # =========================================================================
    # Employees
    # =========================================================================

    def create_employee(self, employee: Employee) -> Employee:
        self._employees.insert_one(employee.model_dump())
        return employee

    def get_employee(self, employee_id: int) -> Optional[Employee]:
        doc = self._employees.find_one({"employee_id": employee_id})
        if doc:
            doc.pop("_id", None)
            return Employee.model_validate(doc)
        return None

    def employee_exists(self, employee_id: int) -> bool:
        return self._employees.count_documents({"employee_id": employee_id}, limit=1) > 0

    # =========================================================================
    # Departments & Sections
    # =========================================================================

    def create_department(self, department: Department) -> Department:
        self._departments.insert_one(department.model_dump())
        return department

    def get_department_by_name(self, name: str) -> Optional[Department]:
        doc = self._departments.find_one({"name": name})
        if doc:
            doc.pop("_id", None)
            return Department.model_validate(doc)
        return None

    def list_departments(self) -> List[Department]:
        departments = []
        for doc in self._departments.find({}).sort("name", ASCENDING):
            doc.pop("_id", None)
            departments.append(Department.model_validate(doc))
        return departments

    def create_section(self, section: Section) -> Section:
        self._sections.insert_one(section.model_dump())
        return section

    def get_section_by_name(self, department_id: str, name: str) -> Optional[Section]:
        doc = self._sections.find_one({"department_id": department_id, "name": name})
        if doc:
            doc.pop("_id", None)
            return Section.model_validate(doc)
        return None

    def list_sections(self, department_id: Optional[str] = None) -> List[Section]:
        query: Dict[str, Any] = {}
        if department_id:
            query["department_id"] = department_id
        sections = []
        for doc in self._sections.find(query).sort("name", ASCENDING):
            doc.pop("_id", None)
            sections.append(Section.model_validate(doc))
        return sections
