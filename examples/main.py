from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI
import sqlalchemy
from fastapi_extjs_filterable import FilterRegistry, FilterTranslator
from fastapi_extjs_filterable.dependencies import PaginateByFilter
from fastapi_pagination import Page, add_pagination
from sqlalchemy import String, ForeignKey, select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column, relationship, declarative_base
import uvicorn

from examples.schemas import StatusEnum, PersonResponse

# ───── App & DB Setup ───────────────────────────

DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = create_async_engine(DATABASE_URL, echo=True)
SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)
Base = declarative_base()


async def get_db():
    async with SessionLocal() as session:
        yield session


# ───── Models ────────────────────────────────────

class Address(Base):
    __tablename__ = "addresses"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    description: Mapped[str] = mapped_column(String, nullable=False)

    people: Mapped[list["Person"]] = relationship("Person", back_populates="address")


class Person(Base):
    __tablename__ = "people"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    full_name: Mapped[str] = mapped_column(String, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    address_id: Mapped[int] = mapped_column(ForeignKey("addresses.id"), nullable=True)
    age: Mapped[int] = mapped_column(nullable=True)
    status: Mapped[StatusEnum] = mapped_column(
        sqlalchemy.Enum(StatusEnum, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        default=StatusEnum.ACTIVE,
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(timezone.utc))

    address: Mapped["Address"] = relationship("Address", back_populates="people")

    @classmethod
    def filter_by_age(cls, conditions, values, type, value):
        # numeric grid filters send the number as text
        if type == "numeric" and value.isdigit():
            conditions.append("people.age = ?")
            values.append(int(value))


# ───── Filter configuration ─────────────────────

registry = FilterRegistry()
registry.configure(Person, {
    "columns": {"name": "people.full_name", "address": "addresses.description"},
    "include": ["address"],
    "special_filters": {"age": "filter_by_age"},
    "default_sort": "people.full_name",
    "per_page": 25,
})
translator = FilterTranslator(registry)


# ───── Lifespan / Seed Data ─────────────────────

@asynccontextmanager
async def lifespan(_: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as session:
        result = await session.execute(select(Address))
        if not result.scalars().first():
            nyc = Address(description="New York")
            la = Address(description="Los Angeles")
            session.add_all([nyc, la])
            await session.commit()

            session.add_all([
                Person(full_name="Alice", email="alice@example.com", address=nyc,
                       status=StatusEnum.ACTIVE, age=30),
                Person(full_name="Bob", email="bob@example.com", address=la,
                       status=StatusEnum.INACTIVE, age=25),
                Person(full_name="Carol", email="carol@example.com", address=nyc,
                       status=StatusEnum.SUSPENDED, age=40),
                Person(full_name="Dave", email="dave@example.com",
                       status=StatusEnum.ACTIVE, age=35),
            ])
            await session.commit()

    yield

# ───── FastAPI App ───────────────────────────────

app = FastAPI(lifespan=lifespan)


@app.get("/people", response_model=Page[PersonResponse])
async def get_people(page=PaginateByFilter(Person, translator, get_db)):
    """
    Paged endpoint for an ExtJS grid using GridFilters, e.g.

        GET /people?start=0&limit=25&sort=name&dir=DESC
            &filter[0][field]=address&filter[0][data][type]=string&filter[0][data][value]=york
            &filter[1][field]=status&filter[1][data][type]=list&filter[1][data][value]=active,suspended
            &filter[2][field]=age&filter[2][data][type]=numeric&filter[2][data][value]=30
    """
    return page


add_pagination(app)

# ───── Run Server ────────────────────────────────

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
