from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.logging import get_logger
from app.models import Course, Lesson, Module, ModuleQuestion, PastQuestion, Quiz, QuizQuestion

logger = get_logger(__name__)

FREE_COURSE_SLUG = "quantitative-aptitude-basics"
PAID_COURSE_SLUG = "physics-exam-crash-course"


def _add_module(db: Session, course: Course, title: str, *, order: int, is_free: bool) -> Module:
    module = Module(course_id=course.id, title=title, description=f"{title} for {course.title}", is_free=is_free, sort_order=order)
    db.add(module)
    db.flush()
    return module


def seed_if_needed(db: Session) -> None:
    existing_course = db.execute(select(Course).where(Course.slug == FREE_COURSE_SLUG)).scalars().first()
    if existing_course:
        return

    currency = get_settings().currency

    free_course = Course(
        slug=FREE_COURSE_SLUG,
        title="Quantitative Aptitude Basics",
        description="Number systems, percentages and ratios for competitive exams.",
        category="Aptitude",
        level="Beginner",
        duration="4 weeks",
        price_minor=0,
        currency=currency,
        is_published=True,
    )
    paid_course = Course(
        slug=PAID_COURSE_SLUG,
        title="Physics Exam Crash Course",
        description="Mechanics and electrostatics with solved past papers.",
        category="Science",
        level="Intermediate",
        duration="6 weeks",
        price_minor=49900,
        currency=currency,
        is_published=True,
    )
    db.add_all([free_course, paid_course])
    db.flush()

    numbers = _add_module(db, free_course, "Number Systems", order=1, is_free=True)
    percentages = _add_module(db, free_course, "Percentages", order=2, is_free=False)
    mechanics = _add_module(db, paid_course, "Mechanics", order=1, is_free=True)
    electrostatics = _add_module(db, paid_course, "Electrostatics", order=2, is_free=False)

    db.add_all(
        [
            Lesson(
                module_id=numbers.id,
                title="Divisibility Rules",
                slug="divisibility-rules",
                content="<p>A number is divisible by 3 when the sum of its digits is divisible by 3.</p>",
                excerpt="A number is divisible by 3 when the sum of its digits is divisible by 3.",
                is_free=True,
                is_published=True,
                is_featured=True,
                sort_order=1,
            ),
            Lesson(
                module_id=percentages.id,
                title="Percentage Change",
                slug="percentage-change",
                content="<p>Percentage change is (new - old) / old x 100.</p>",
                excerpt="Percentage change is (new - old) / old x 100.",
                is_published=True,
                is_featured=True,
                sort_order=1,
            ),
            Lesson(
                module_id=mechanics.id,
                title="Newton's Laws",
                slug="newtons-laws",
                content="<p>Force equals mass times acceleration.</p>",
                excerpt="Force equals mass times acceleration.",
                is_free=True,
                is_published=True,
                is_featured=True,
                sort_order=1,
            ),
            Lesson(
                module_id=electrostatics.id,
                title="Coulomb's Law",
                slug="coulombs-law",
                content="<p>The force between two charges is inversely proportional to the square of their distance.</p>",
                excerpt="The force between two charges is inversely proportional to the square of their distance.",
                is_published=True,
                sort_order=1,
            ),
        ]
    )

    quiz = Quiz(module_id=mechanics.id, title="Mechanics Warm-up", sort_order=1)
    db.add(quiz)
    db.flush()
    db.add(
        QuizQuestion(
            quiz_id=quiz.id,
            type="single",
            question="What is the SI unit of force?",
            options=["Joule", "Newton", "Watt", "Pascal"],
            correct=1,
            sort_order=1,
        )
    )
    db.add(
        PastQuestion(
            module_id=electrostatics.id,
            question="Two charges of 1 uC are 1 m apart. Find the force between them.",
            solution="F = kq1q2/r^2 = 9 x 10^9 x 10^-12 = 9 x 10^-3 N",
            year=2023,
            sort_order=1,
        )
    )
    db.add(
        ModuleQuestion(
            module_id=numbers.id,
            type="single",
            question="Which of these numbers is divisible by 9?",
            options=["123", "729", "1001"],
            correct=1,
            sort_order=1,
        )
    )

    db.commit()
    logger.info("seed_catalog_created", courses=[FREE_COURSE_SLUG, PAID_COURSE_SLUG])
