"""
Seed Data Script - Permission registry, organization, demo users and tickets
Run: python -m scripts.seed_data [--no-tickets]

Safe to run repeatedly; existing records are left alone except the admin
role, which is refreshed to carry the whole permission catalog.
"""
import argparse
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from typing import Dict, List, Optional

from taskplus.config.settings import settings
from taskplus.repositories.mongo_client import create_indexes
from taskplus.repositories.access_repo import AccessRepository
from taskplus.repositories.user_repo import UserRepository
from taskplus.repositories.counter_repo import CounterRepository
from taskplus.domain.models import User, Employee, Department, Section, ActorContext
from taskplus.domain.enums import ResolutionStatus, Shift
from taskplus.engine.permission_registry import get_permission_catalog, get_role_presets
from taskplus.services.ticket_service import TicketService
from taskplus.utils.idgen import generate_user_id, generate_department_id, generate_section_id
from taskplus.utils.security import hash_password
from taskplus.utils.time import storage_now


DEPARTMENT_NAME = "Marcom"
SECTION_NAMES = ["Digital Media", "VOD", "Support Operations", "Product Development"]

# username -> (employee name, shift, title, section); None = no linked employee
DEMO_USERS: Dict[str, Optional[tuple]] = {
    "admin": None,
    "manager": ("Mariam Manager", Shift.MORNING, "Marcom Manager", "Support Operations"),
    "supervisor": ("Samir Supervisor", Shift.MORNING, "Support Supervisor", "Support Operations"),
    "agent": ("Amina Agent", Shift.AFTERNOON, "Support Agent", "Support Operations"),
    "followup": ("Farah Followup", Shift.MORNING, "Follow-up Agent", "Support Operations"),
    "digitalmedia": ("Dina Media", Shift.MORNING, "Content Producer", "Digital Media"),
}

SAMPLE_TICKETS = [
    {
        "customer_phone": "0612345678",
        "customer_location": "Casablanca",
        "communication_channel": "WhatsApp",
        "device_type": "Android TV",
        "issue_category": "IPTV",
        "issue_type": "Channel freeze",
        "issue_description": "Sports channels freeze every few minutes",
    },
    {
        "customer_phone": "0698765432",
        "customer_location": "Rabat",
        "communication_channel": "Phone",
        "device_type": "iPhone",
        "issue_category": "OTP",
        "issue_type": "OTP not received",
        "issue_description": "Login code never arrives by SMS",
    },
]


def seed_registry(access_repo: AccessRepository) -> None:
    """Permission catalog and role presets"""
    for permission in get_permission_catalog():
        access_repo.upsert_permission(permission)

    for role in get_role_presets():
        if role.key == "admin" or access_repo.get_role(role.key) is None:
            access_repo.upsert_role(role)
    print(f"Registry: {len(get_permission_catalog())} permissions, {len(get_role_presets())} roles")


def seed_organization(user_repo: UserRepository) -> Dict[str, Section]:
    """The Marcom department and its sections, keyed by section name"""
    department = user_repo.get_department_by_name(DEPARTMENT_NAME)
    if department is None:
        department = user_repo.create_department(
            Department(department_id=generate_department_id(), name=DEPARTMENT_NAME)
        )

    sections: Dict[str, Section] = {}
    for name in SECTION_NAMES:
        section = user_repo.get_section_by_name(department.department_id, name)
        if section is None:
            section = user_repo.create_section(Section(
                section_id=generate_section_id(),
                department_id=department.department_id,
                name=name,
            ))
        sections[name] = section
    print(f"Organization: {DEPARTMENT_NAME} with {len(sections)} sections")
    return sections


def seed_users(
    user_repo: UserRepository,
    access_repo: AccessRepository,
    counter_repo: CounterRepository,
    sections: Dict[str, Section]
) -> List[User]:
    """Demo accounts, each granted the role of the same name"""
    users = []
    for username, employee_info in DEMO_USERS.items():
        existing = user_repo.get_user_by_identifier(username)
        if existing:
            users.append(existing)
            continue

        employee_id = None
        if employee_info:
            name, shift, title, section_name = employee_info
            section = sections[section_name]
            employee_id = counter_repo.next_sequence("employees")
            user_repo.create_employee(Employee(
                employee_id=employee_id,
                name=name,
                shift=shift,
                title=title,
                department_id=section.department_id,
                section_id=section.section_id,
            ))

        now = storage_now()
        user = user_repo.create_user(User(
            user_id=generate_user_id(),
            username=username,
            email=f"{username}@taskplus.local",
            password_hash=hash_password(settings.seed_password),
            employee_id=employee_id,
            created_at=now,
            updated_at=now,
        ))
        access_repo.upsert_user_access(user.user_id, {"roles": [username]})
        users.append(user)
        print(f"Created user: {username}" + (f" (employee {employee_id})" if employee_id else ""))
    return users


def seed_sample_tickets(users: List[User], counter_repo: CounterRepository) -> None:
    """A couple of open tickets plus one imported as already Completed"""
    if counter_repo.current_value("tickets") > 0:
        print("Tickets already present. Skipping sample tickets.")
        return

    agent = next(u for u in users if u.username == "agent")
    actor = ActorContext(
        user_id=agent.user_id,
        username=agent.username,
        email=agent.email,
        employee_id=agent.employee_id,
    )
    service = TicketService()
    for data in SAMPLE_TICKETS:
        ticket = service.create_ticket(data, actor)
        print(f"Created ticket #{ticket['ticket_id']}")

    completed = service.create_ticket(
        {
            "customer_phone": "0655512345",
            "customer_location": "Marrakesh",
            "communication_channel": "Email",
            "issue_category": "Subscription",
            "issue_type": "Renewal",
            "issue_description": "Subscription renewed after payment confirmation",
        },
        actor,
        initial_status=ResolutionStatus.COMPLETED,
    )
    print(f"Created completed ticket #{completed['ticket_id']}")


def main():
    parser = argparse.ArgumentParser(description="Seed the TaskPlus database")
    parser.add_argument("--no-tickets", action="store_true", help="Skip sample tickets")
    args = parser.parse_args()

    print("=== Seeding database ===")
    print("-" * 40)

    create_indexes()

    access_repo = AccessRepository()
    user_repo = UserRepository()
    counter_repo = CounterRepository()

    seed_registry(access_repo)
    sections = seed_organization(user_repo)
    users = seed_users(user_repo, access_repo, counter_repo, sections)
    if not args.no_tickets:
        seed_sample_tickets(users, counter_repo)

    print("-" * 40)
    print(f"Done! Demo accounts use the password from SEED_PASSWORD ({len(users)} users)")


if __name__ == "__main__":
    main()
