# course_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Course Service (dev mock)")


COURSES = {
    1: {"id": 1, "title": "Python for Beginners", "price": 20.00, "published": True},
    2: {"id": 2, "title": "Data Analysis with Pandas", "price": 30.00, "published": True},
    3: {"id": 3, "title": "Async Web Services", "price": 45.50, "published": True},
    4: {"id": 4, "title": "Draft: Rust for Pythonistas", "price": 25.00, "published": False},
}

@app.get("/courses/{course_id}")
def get_course(course_id: int):
    course = COURSES.get(course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course
