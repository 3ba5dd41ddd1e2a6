"""Read-only lookups for the care team: users, roles and basic teams."""

from __future__ import annotations

from app.errors import NotFoundError
from app.models.aps import EquipoBasico, Rol, Usuario
from app.repositories.base import Repository


class UsuarioRepository(Repository):

    def get(self, usuario_id: int) -> Usuario:
        usuario = self.db.query(Usuario).filter(Usuario.usuario_id == usuario_id).first()
        if usuario is None:
            raise NotFoundError("Usuario no encontrado")
        return usuario

    def list_active(self) -> list[Usuario]:
        return (
            self.db.query(Usuario)
            .filter(Usuario.activo.is_(True))
            .order_by(Usuario.nombre_completo)
            .all()
        )

    def list_by_role(self, nombre_rol: str) -> list[Usuario]:
        return (
            self.db.query(Usuario)
            .join(Rol, Usuario.rol_id == Rol.rol_id)
            .filter(Rol.nombre_rol == nombre_rol, Usuario.activo.is_(True))
            .order_by(Usuario.nombre_completo)
            .all()
        )

    def list_by_team(self, equipo_id: int) -> list[Usuario]:
        return (
            self.db.query(Usuario)
            .filter(Usuario.equipo_id == equipo_id, Usuario.activo.is_(True))
            .order_by(Usuario.nombre_completo)
            .all()
        )

    def roles(self) -> list[Rol]:
        return self.db.query(Rol).order_by(Rol.nombre_rol).all()

    def teams(self) -> list[EquipoBasico]:
        return self.db.query(EquipoBasico).order_by(EquipoBasico.nombre_equipo).all()
