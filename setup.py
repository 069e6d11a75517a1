from setuptools import find_packages, setup

with open('README.md', encoding='utf-8') as readme_file:
    readme = readme_file.read()

install_requires = ['Pyomo>=6.7', 'numpy>=1.24', 'pandas>=2.0', 'packaging>=23.0']

extras_require = {'excel': ['openpyxl>=3.1'],
                  'test': ['pytest>=7.0', 'highspy>=1.7', 'openpyxl>=3.1']}

setup(name='cwap',
      version='0.1',
      description='Consulting Workforce Allocation Problem',
      long_description=readme,
      long_description_content_type='text/markdown',
      install_requires=install_requires,
      extras_require=extras_require,
      license='MIT license',
      keywords='cwap CWAP workforce allocation pyomo',
      packages=find_packages(include=['cwap', 'cwap.*']),
      entry_points={'console_scripts': ['cwap=cwap.__main__:main']},
      python_requires='>=3.9'
     )
