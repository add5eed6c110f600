"""
资源服务基类
对远端 API 某个资源集合的 list/get/create/update/delete 封装
"""
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from illary.services.api_client import ApiClient, as_list

T = TypeVar("T", bound=BaseModel)

Payload = Union[BaseModel, Dict[str, Any]]


def payload_to_json(payload: Payload) -> Dict[str, Any]:
    """模型 -> API JSON 体"""
    if isinstance(payload, BaseModel):
        to_api = getattr(payload, "to_api", None)
        if callable(to_api):
            return to_api()
        return payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    return dict(payload)


class ResourceService(Generic[T]):
    """
    资源服务

    子类声明:
        model: 响应模型
        collection_path: 集合路径（创建、列表）
        item_path: 单个资源路径模板，含 {id}
        list_params: 列表查询参数
    """

    model: Type[T]
    collection_path: str
    item_path: str
    list_params: Optional[Dict[str, Any]] = None

    def __init__(self, api: ApiClient):
        self.api = api

    @property
    def source(self) -> str:
        return type(self).__name__

    def _parse(self, data: Any) -> T:
        return self.model.model_validate(data)

    def list(self) -> List[T]:
        """获取列表"""
        payload = self.api.get(self.collection_path, params=self.list_params)
        return [self._parse(item) for item in as_list(payload, self.source)]

    def get(self, item_id: int) -> T:
        """获取单个资源"""
        return self._parse(self.api.get(self.item_path.format(id=item_id)))

    def create(self, payload: Payload) -> T:
        """创建"""
        return self._parse(self.api.post(self.collection_path, json=payload_to_json(payload)))

    def update(self, item_id: int, payload: Payload) -> T:
        """更新"""
        return self._parse(self.api.put(self.item_path.format(id=item_id), json=payload_to_json(payload)))

    def delete(self, item_id: int) -> None:
        """删除"""
        self.api.delete(self.item_path.format(id=item_id))
