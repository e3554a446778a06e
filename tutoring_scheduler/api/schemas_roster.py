from pydantic import BaseModel, ConfigDict, Field


class TeacherBase(BaseModel):
    first_name: str
    last_name: str
    bio: str | None = None
    max_capacity: int = Field(1, ge=1)
    user_id: str | None = None


class TeacherCreate(TeacherBase):
    pass


class TeacherUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    max_capacity: int | None = Field(None, ge=1)
    user_id: str | None = None


class TeacherOut(TeacherBase):
    id: int

    model_config = ConfigDict(from_attributes=True)


class StudentBase(BaseModel):
    first_name: str
    last_name: str
    email: str | None = None
    grade: str | None = None
    school: str | None = None
    user_id: str | None = None


class StudentCreate(StudentBase):
    pass


class StudentUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    grade: str | None = None
    school: str | None = None
    user_id: str | None = None


class StudentOut(StudentBase):
    id: int

    model_config = ConfigDict(from_attributes=True)


class SubjectBase(BaseModel):
    name: str
    description: str | None = None


class SubjectCreate(SubjectBase):
    pass


class SubjectUpdate(BaseModel):
    name: str | None = None
    description: str | None = None


class SubjectOut(SubjectBase):
    id: int

    model_config = ConfigDict(from_attributes=True)
