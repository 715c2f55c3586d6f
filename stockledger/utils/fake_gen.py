from faker import Faker
from faker.providers import BaseProvider


class TradeProvider(BaseProvider):
    """
    商贸演示数据生成器
    生成小商超 / 批发商常见的商品名、分类、往来单位
    """

    # 品质前缀
    quality_prefixes = [
        '精选', '有机', '特级', '家庭装', '实惠装', '进口', '原味', '低糖',
        '无添加', '经典', '加大', '迷你'
    ]

    # 分类 -> 商品名, 单位
    catalog = {
        '粮油': [('大米', '袋'), ('花生油', '桶'), ('挂面', '包'), ('面粉', '袋')],
        '饮料': [('矿泉水', '箱'), ('橙汁', '瓶'), ('乌龙茶', '瓶'), ('酸奶', '盒')],
        '零食': [('薯片', '包'), ('饼干', '盒'), ('坚果', '罐'), ('巧克力', '盒')],
        '日化': [('洗衣液', '瓶'), ('牙膏', '支'), ('洗发水', '瓶'), ('抽纸', '提')],
        '调味品': [('酱油', '瓶'), ('陈醋', '瓶'), ('食盐', '袋'), ('鸡精', '袋')],
    }

    specifications = ['500g', '1kg', '5kg', '250ml', '550ml', '1.5L', '12入', '24入']

    # 公司后缀
    company_suffixes = ['商贸有限公司', '食品厂', '批发部', '贸易公司', '日用品公司', '供应链公司']

    def trade_category(self):
        return self.random_element(list(self.catalog))

    def trade_product(self, category=None):
        """返回 (名称, 分类, 单位)"""
        category = category or self.trade_category()
        name, unit = self.random_element(self.catalog[category])
        return f"{self.random_element(self.quality_prefixes)}{name}", category, unit

    def trade_specification(self):
        return self.random_element(self.specifications)

    def trade_company(self):
        """生成往来单位名称"""
        prefix = self.generator.city()  # 使用 Faker 内置的城市名作为字号
        return f"{prefix}{self.generator.last_name()}{self.random_element(self.company_suffixes)}"


# 初始化 Faker 并添加自定义 Provider
fake = Faker('zh_CN')
fake.add_provider(TradeProvider)
