"""
酒店（门店）服务
"""
from illary.models.schemas import Establishment
from illary.services.resource_service import ResourceService


class EstablishmentService(ResourceService[Establishment]):
    """酒店服务"""

    model = Establishment
    collection_path = "/establishments"
    item_path = "/establishments/{id}"
    list_params = {"skip": 0, "limit": 100}
