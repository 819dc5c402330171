from flask import request, jsonify
from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token, jwt_required

from . import bp
from ..model import User
from ..schemas import RegisterRequest, LoginRequest, parse_request
from ..services import get_services
from ..utils.api import api_ok, api_error
from ..utils.decorators import current_user_id


@bp.post("/register")
def register():
    req = parse_request(RegisterRequest, request.get_json(silent=True))
    storage = get_services().storage

    with storage.transaction() as s:
        if s.query(User.id).filter(User.email == req.email).first():
            return jsonify(api_error("Email already registered")), 409

        # Bootstrap: very first account becomes admin
        is_first_user = s.query(User.id).count() == 0
        user = User(
            email=req.email,
            name=req.name,
            password_hash=generate_password_hash(req.password),
            role="admin" if is_first_user else "user",
        )
        s.add(user)
        s.flush()
        data = {"user": user.as_dict()}

    return jsonify(api_ok("Account created successfully", data=data)), 201


@bp.post("/login")
def login():
    req = parse_request(LoginRequest, request.get_json(silent=True))
    with get_services().storage.session() as s:
        user = s.query(User).filter(User.email == req.email).first()
        if not user or not check_password_hash(user.password_hash, req.password):
            return jsonify(api_error("Invalid email or password")), 401
        data = {"user": user.as_dict()}

    access_token = create_access_token(identity=str(data["user"]["id"]))
    return jsonify(api_ok(
        "You've logged in successfully",
        data={**data, "user_logged_in": True, "token": access_token},
    )), 200


@bp.get("/me")
@jwt_required()
def me():
    uid = current_user_id()
    with get_services().storage.session() as s:
        user = s.get(User, uid)
        if not user:
            return jsonify(api_error("user not found")), 404
        return jsonify(api_ok("user", {"user": user.as_dict()})), 200
