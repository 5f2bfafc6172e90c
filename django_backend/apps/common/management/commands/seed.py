import random
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.projects import services as project_services
from apps.projects.models import Project, ProjectRole, ProjectStatus
from apps.tasks import comments as comment_services
from apps.tasks import services as task_services
from apps.tasks.models import TaskPriority, TaskStatus
from apps.users import services as user_services
from apps.users import teams as team_services
from apps.users.models import TeamRole
from apps.workload.allocation import DistributionStrategy, assign_task_with_workload


class Command(BaseCommand):
    help = 'Seed the database with sample users, a project, a team, tasks and workload'

    def add_arguments(self, parser):
        parser.add_argument(
            '--users',
            type=int,
            default=6,
            help='Number of users to create'
        )
        parser.add_argument(
            '--tasks',
            type=int,
            default=12,
            help='Number of tasks to create'
        )
        parser.add_argument(
            '--seed',
            type=int,
            default=None,
            help='Random seed for reproducible data'
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['seed'] is not None:
            random.seed(options['seed'])

        self.stdout.write('Starting database seeding...')

        users = self.create_users(options['users'])
        owner = users[0]
        project = self.create_project(owner, users[1:])
        team = self.create_team(owner, users)
        team_services.add_team_to_project(project.id, team.id, owner.id)
        tasks = self.create_tasks(project, owner, users, options['tasks'])
        self.create_comments(tasks, users)

        self.stdout.write(
            self.style.SUCCESS(
                f'\nSeed data created successfully!\n'
                f'Users: {len(users)}\n'
                f'Project: {project.name}\n'
                f'Team: {team.name}\n'
                f'Tasks: {len(tasks)}\n\n'
                f'Sample users created:\n' +
                '\n'.join([f'- {user.name} <{user.email}> (sub: {user.external_subject})' for user in users])
            )
        )

    def create_users(self, num_users):
        self.stdout.write('Creating users...')

        NAMES = [
            'Alice Smith', 'Bob Johnson', 'Charlie Brown', 'Diana Garcia', 'Eve Miller',
            'Frank Davis', 'Grace Wilson', 'Henry Moore', 'Ivy Taylor', 'Jack Martin',
        ]

        users = []
        for i in range(max(num_users, 2)):
            name = NAMES[i % len(NAMES)]
            subject = f"seed-{i:04d}-{name.split()[0].lower()}"
            users.append(user_services.get_or_create_by_external_subject(
                subject,
                email=f"{name.split()[0].lower()}{i}@example.com",
                name=name,
            ))
        return users

    def create_project(self, owner, members):
        self.stdout.write('Creating project...')

        existing = Project.objects.filter(name='Website Relaunch', owner_id=owner.id).first()
        if existing:
            return existing

        today = timezone.now()
        return project_services.create_project_with_team(
            {
                'name': 'Website Relaunch',
                'description': 'Redesign and relaunch of the public website',
                'owner_id': owner.id,
                'start_date': today,
                'end_date': today + timedelta(days=60),
                'status': ProjectStatus.ACTIVE,
            },
            [{'user_id': user.id, 'role': random.choice([ProjectRole.ADMIN, ProjectRole.MEMBER])} for user in members],
        )

    def create_team(self, owner, users):
        self.stdout.write('Creating team...')

        team = team_services.create_team('Delivery Team', 'Designers and developers shipping the relaunch', owner.id)
        for user in users[1:]:
            team_services.add_team_member(team.id, user.id, random.choice([TeamRole.ADMIN, TeamRole.MEMBER]), owner.id)
        return team

    def create_tasks(self, project, owner, users, num_tasks):
        self.stdout.write('Creating tasks and workload...')

        TASK_STATUSES = [TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.IN_REVIEW, TaskStatus.DONE, TaskStatus.BLOCKED]
        TASK_PRIORITIES = [TaskPriority.LOW, TaskPriority.MEDIUM, TaskPriority.HIGH, TaskPriority.URGENT]
        STRATEGIES = [DistributionStrategy.EVEN, DistributionStrategy.FRONT_LOADED, DistributionStrategy.BACK_LOADED]

        tasks = []
        previous = None
        for i in range(num_tasks):
            start = timezone.now() + timedelta(days=random.randint(0, 20))
            end = start + timedelta(days=random.randint(1, 9))
            task_title = f"Task {i+1}: {random.choice(['Implement', 'Fix', 'Design', 'Review', 'Test'])} {random.choice(['landing page', 'navigation', 'search', 'checkout', 'analytics'])}"

            task = task_services.create_task({
                'project_id': project.id,
                'title': task_title,
                'description': f"Description for {task_title}",
                'status': random.choice(TASK_STATUSES),
                'priority': random.choice(TASK_PRIORITIES),
                'start_date': start,
                'end_date': end,
                'estimated_hours': random.randint(4, 40),
                'dependencies': [previous.id] if previous and random.random() > 0.6 else [],
            }, owner.id)

            result = assign_task_with_workload(
                task.id, random.choice(users).id, owner.id, random.choice(STRATEGIES)
            )
            tasks.append(result['task'])
            previous = task

        return tasks

    def create_comments(self, tasks, users):
        self.stdout.write('Creating comments...')

        for task in tasks:
            # 60% of tasks have comments
            if random.random() > 0.4:
                for _ in range(random.randint(1, 4)):
                    comment_services.create_comment(task.id, random.choice([
                        "Working on this task now.",
                        "This looks good, just need to test it.",
                        "Found an issue, need to fix it.",
                        "Completed the implementation.",
                        "Need more information about this requirement.",
                        "This is blocked by another task.",
                    ]), random.choice(users).id)
